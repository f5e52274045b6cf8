import pytest
from datetime import datetime

from splitease.models.group import GroupMember, MemberRole


def member(role=MemberRole.member, **kwargs):
    return GroupMember(group_id=1, user_id=1, role=role, **kwargs)


def test_admin_has_every_permission():
    m = member(MemberRole.admin)
    assert m.has_permission("can_remove_members")
    assert m.has_permission("can_delete_expenses")


def test_moderator_permissions():
    m = member(MemberRole.moderator)
    assert m.has_permission("can_edit_expenses")
    assert m.has_permission("can_invite_members")
    assert not m.has_permission("can_delete_expenses")


def test_member_uses_flags():
    m = member()
    assert m.has_permission("can_add_expenses")
    assert not m.has_permission("can_edit_expenses")
    m.can_edit_expenses = True
    assert m.has_permission("can_edit_expenses")


def test_former_member_has_no_permissions():
    m = member(MemberRole.admin, left_at=datetime(2026, 1, 1))
    assert not m.is_current
    assert not m.has_permission("can_add_expenses")


def test_unknown_permission():
    with pytest.raises(ValueError):
        member().has_permission("can_fly")
