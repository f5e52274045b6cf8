import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select

from splitease.config import config
from splitease.db import get_session
from splitease.models.group import CURRENCIES, PERMISSIONS, Group, GroupCreate, GroupMember, MemberAdd, MemberRole
from splitease.models.user import User
from splitease.repository import GroupRepository
from splitease.services.balance_service import compute_group_balances
from splitease.services.settlement_service import suggest_settlements
from splitease.services.stats_service import compute_group_statistics

logger = logging.getLogger(__name__)

router = APIRouter()


def require_user(request: Request):
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Login required")
    return user


def require_membership(repo: GroupRepository, group_id: int, user_id: int) -> Tuple[Group, GroupMember]:
    group = repo.get_group(group_id)
    if not group:
        raise HTTPException(404, "Group not found")
    member = repo.get_member(group_id, user_id)
    if not member:
        raise HTTPException(403, "Not a member of this group")
    return group, member


def require_permission(member: GroupMember, permission: str):
    if not member.has_permission(permission):
        raise HTTPException(403, f"Missing permission: {permission}")


def member_dict(m: GroupMember, names: Dict[int, str]) -> dict:
    return {
        "user_id": m.user_id,
        "name": names.get(m.user_id),
        "role": m.role,
        "permissions": {p: m.has_permission(p) for p in PERMISSIONS},
        "joined_at": m.joined_at,
        "left_at": m.left_at,
    }


def group_balances(repo: GroupRepository, group_id: int,
                   include_settled: Optional[bool] = None) -> Tuple[List[GroupMember], Dict[int, float]]:
    if include_settled is None:
        include_settled = config.INCLUDE_SETTLED
    members = repo.members(group_id)
    nets = compute_group_balances([m.user_id for m in members], repo.ledger(group_id), include_settled)
    return members, nets


def named_balances(nets: Dict[int, float], names: Dict[int, str]) -> List[dict]:
    return [{"user_id": uid, "name": names.get(uid), "balance": net} for uid, net in nets.items()]


def named_settlements(nets: Dict[int, float], names: Dict[int, str], currency: str) -> List[dict]:
    settlements = suggest_settlements(nets)
    for s in settlements:
        s["from_name"] = names.get(s["from"])
        s["to_name"] = names.get(s["to"])
        s["currency"] = currency
    return settlements


@router.get("/groups")
def list_groups(current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    uid = current_user["id"]
    out = []
    for g in repo.groups_for_user(uid):
        _, nets = group_balances(repo, g.id)
        out.append({"id": g.id, "name": g.name, "currency": g.currency, "balance": nets.get(uid, 0.0)})
    return out


@router.post("/groups", status_code=201)
def create_group(body: GroupCreate, current_user=Depends(require_user), s: Session = Depends(get_session)):
    if body.currency not in CURRENCIES:
        raise HTTPException(422, f"Unsupported currency: {body.currency}")
    g = Group(name=body.name.strip(), description=body.description or "", currency=body.currency,
              created_by=current_user["id"])
    s.add(g)
    s.flush()
    s.add(GroupMember(group_id=g.id, user_id=current_user["id"], role=MemberRole.admin,
                      **{p: True for p in PERMISSIONS}))
    s.commit()
    s.refresh(g)
    logger.info("group %s created by user %s", g.id, current_user["id"])
    return {"id": g.id, "name": g.name, "description": g.description, "currency": g.currency}


@router.get("/groups/{group_id}")
def view_group(group_id: int, include_settled: Optional[bool] = None,
               current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    group, _ = require_membership(repo, group_id, current_user["id"])
    members, nets = group_balances(repo, group_id, include_settled)
    names = repo.user_names(m.user_id for m in members)
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "currency": group.currency,
        "created_by": group.created_by,
        "members": [member_dict(m, names) for m in members],
        "balances": named_balances(nets, names),
        "settlements": named_settlements(nets, names, group.currency),
    }


@router.post("/groups/{group_id}/members", status_code=201)
def add_member(group_id: int, body: MemberAdd, current_user=Depends(require_user),
               s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    _, me = require_membership(repo, group_id, current_user["id"])
    require_permission(me, "can_invite_members")
    if body.role != MemberRole.member and me.role != MemberRole.admin:
        raise HTTPException(403, "Only admins can grant the admin or moderator role")

    user = None
    if body.user_id is not None:
        user = s.get(User, body.user_id)
        if not user:
            raise HTTPException(404, "User not found")
    elif body.email:
        user = s.exec(select(User).where(User.email == body.email)).first()
        if not user:
            user = User(name=body.name or body.email, email=body.email)
    elif body.name:
        user = User(name=body.name)
    else:
        raise HTTPException(422, "Provide a user_id, email or name")
    s.add(user)
    s.flush()

    member = repo.get_member(group_id, user.id, include_former=True)
    if member and member.is_current:
        raise HTTPException(409, "User is already a member")
    if member:
        # rejoining starts from a fresh member's permissions
        fresh = GroupMember(group_id=group_id, user_id=user.id)
        for p in PERMISSIONS:
            setattr(member, p, getattr(fresh, p))
        member.left_at = None
        member.role = body.role
        member.joined_at = datetime.utcnow()
        member.last_active = member.joined_at
    else:
        member = GroupMember(group_id=group_id, user_id=user.id, role=body.role)
    s.add(member)
    s.commit()
    s.refresh(member)
    return member_dict(member, {user.id: user.name})


@router.delete("/groups/{group_id}/members/{user_id}")
def remove_member(group_id: int, user_id: int, current_user=Depends(require_user),
                  s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    _, me = require_membership(repo, group_id, current_user["id"])
    if user_id != current_user["id"]:
        require_permission(me, "can_remove_members")
    member = repo.get_member(group_id, user_id)
    if not member:
        raise HTTPException(404, "Member not found")
    # keep the row so old splits still point at a former member
    member.left_at = datetime.utcnow()
    s.add(member)
    s.commit()
    return {"status": "ok"}


@router.get("/groups/{group_id}/balances")
def get_balances(group_id: int, include_settled: Optional[bool] = None,
                 current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    require_membership(repo, group_id, current_user["id"])
    members, nets = group_balances(repo, group_id, include_settled)
    return named_balances(nets, repo.user_names(m.user_id for m in members))


@router.get("/groups/{group_id}/settlements")
def get_settlements(group_id: int, include_settled: Optional[bool] = None,
                    current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    group, _ = require_membership(repo, group_id, current_user["id"])
    members, nets = group_balances(repo, group_id, include_settled)
    return named_settlements(nets, repo.user_names(m.user_id for m in members), group.currency)


@router.get("/groups/{group_id}/statistics")
def get_statistics(group_id: int, current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    require_membership(repo, group_id, current_user["id"])
    return compute_group_statistics(repo.ledger(group_id), repo.members(group_id))
