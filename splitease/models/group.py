from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

CURRENCIES = ("USD", "EUR", "GBP", "INR", "CAD", "AUD", "JPY", "CNY")

PERMISSIONS = (
    "can_add_expenses",
    "can_edit_expenses",
    "can_delete_expenses",
    "can_invite_members",
    "can_remove_members",
)

MODERATOR_PERMISSIONS = ("can_add_expenses", "can_edit_expenses", "can_invite_members")


class MemberRole(str, Enum):
    admin = "admin"
    moderator = "moderator"
    member = "member"


class Group(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = ""
    currency: str = "USD"
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class GroupMember(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    role: MemberRole = MemberRole.member
    can_add_expenses: bool = True
    can_edit_expenses: bool = False
    can_delete_expenses: bool = False
    can_invite_members: bool = False
    can_remove_members: bool = False
    joined_at: datetime = Field(default_factory=datetime.utcnow)
    last_active: datetime = Field(default_factory=datetime.utcnow)
    # set when the member leaves; their old splits stay on record
    left_at: Optional[datetime] = None

    @property
    def is_current(self) -> bool:
        return self.left_at is None

    def has_permission(self, permission: str) -> bool:
        if permission not in PERMISSIONS:
            raise ValueError(f"unknown permission {permission!r}")
        if not self.is_current:
            return False
        if self.role == MemberRole.admin:
            return True
        if self.role == MemberRole.moderator:
            return permission in MODERATOR_PERMISSIONS
        return bool(getattr(self, permission))


class GroupCreate(SQLModel):
    name: str = Field(min_length=1)
    description: Optional[str] = ""
    currency: str = "USD"


class MemberAdd(SQLModel):
    user_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: MemberRole = MemberRole.member
