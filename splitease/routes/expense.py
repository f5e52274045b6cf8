import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from splitease.db import get_session
from splitease.errors import SplitError
from splitease.models.expense import (
    CATEGORY_GROUPS, Expense, ExpenseCategory, ExpenseCreate, ExpenseSplit, ExpenseUpdate,
    SettleRequest, SplitEntryIn, SplitMethod,
)
from splitease.models.group import GroupMember
from splitease.models.ledger import SplitShare
from splitease.repository import GroupRepository
from splitease.routes.group import require_membership, require_permission, require_user
from splitease.services.split_service import resolve_split, validate_split

logger = logging.getLogger(__name__)

router = APIRouter()


def expense_dict(e: Expense, splits: List[ExpenseSplit], names: dict) -> dict:
    return {
        "id": e.id,
        "group_id": e.group_id,
        "description": e.description,
        "amount": e.amount,
        "payer_id": e.payer_id,
        "payer_name": names.get(e.payer_id),
        "category": e.category,
        "split_method": e.split_method,
        "date": e.date,
        "notes": e.notes,
        "splits": [
            {"user_id": sp.user_id, "name": names.get(sp.user_id), "amount": sp.amount,
             "percentage": sp.percentage, "shares": sp.shares, "settled": sp.settled}
            for sp in splits
        ],
        "created_at": e.created_at,
        "updated_at": e.updated_at,
    }


def _render(repo: GroupRepository, e: Expense) -> dict:
    splits = repo.splits([e.id])[e.id]
    names = repo.user_names([e.payer_id] + [sp.user_id for sp in splits])
    return expense_dict(e, splits, names)


def _build_split(repo: GroupRepository, group_id: int, amount: float, method: SplitMethod,
                 entries: List[SplitEntryIn]) -> List[SplitShare]:
    participants = [SplitShare(user_id=p.user_id, amount=p.amount or 0.0, percentage=p.percentage,
                               shares=p.shares) for p in entries]
    everyone = [m.user_id for m in repo.members(group_id, include_former=True)]
    try:
        splits = resolve_split(amount, method, participants)
        validate_split(amount, method, splits, member_ids=everyone)
    except SplitError as e:
        logger.info("rejected split for group %s: %s", group_id, e)
        raise HTTPException(422, str(e))
    return splits


def _load_expense(repo: GroupRepository, expense_id: int, user_id: int):
    e = repo.session.get(Expense, expense_id)
    if not e:
        raise HTTPException(404, "Expense not found")
    _, member = require_membership(repo, e.group_id, user_id)
    return e, member


def _touch(s: Session, member: GroupMember):
    member.last_active = datetime.utcnow()
    s.add(member)


@router.get("/expenses/categories")
def list_categories():
    return CATEGORY_GROUPS


@router.get("/expenses/recent")
def recent_expenses(current_user=Depends(require_user), s: Session = Depends(get_session)):
    stmt = (select(Expense).join(ExpenseSplit, Expense.id == ExpenseSplit.expense_id)
            .where(ExpenseSplit.user_id == current_user["id"])
            .order_by(Expense.date.desc()).limit(10))
    repo = GroupRepository(s)
    return [_render(repo, e) for e in s.exec(stmt).all()]


@router.get("/groups/{group_id}/expenses")
def list_expenses(group_id: int, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                  category: Optional[ExpenseCategory] = None,
                  current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    require_membership(repo, group_id, current_user["id"])
    expenses = repo.expenses(group_id, start_date, end_date, category)
    splits = repo.splits(e.id for e in expenses)
    ids = {e.payer_id for e in expenses} | {sp.user_id for rows in splits.values() for sp in rows}
    names = repo.user_names(ids)
    # newest first
    return [expense_dict(e, splits[e.id], names) for e in reversed(expenses)]


@router.post("/groups/{group_id}/expenses", status_code=201)
def add_expense(group_id: int, body: ExpenseCreate, current_user=Depends(require_user),
                s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    _, member = require_membership(repo, group_id, current_user["id"])
    require_permission(member, "can_add_expenses")

    payer_id = body.payer_id or current_user["id"]
    if not repo.get_member(group_id, payer_id):
        raise HTTPException(422, "Payer must be a member of the group")

    entries = body.splits
    if not entries:
        # default: everyone currently in the group, equally
        entries = [SplitEntryIn(user_id=m.user_id) for m in repo.members(group_id)]
    shares = _build_split(repo, group_id, body.amount, body.split_method, entries)

    e = Expense(group_id=group_id, payer_id=payer_id, amount=body.amount, description=body.description.strip(),
                category=body.category, split_method=body.split_method, notes=body.notes,
                date=body.date or datetime.utcnow())
    s.add(e)
    s.flush()
    repo.replace_splits(e, shares)
    _touch(s, member)
    s.commit()
    s.refresh(e)
    logger.info("expense %s added to group %s", e.id, group_id)
    return _render(repo, e)


@router.put("/expenses/{expense_id}")
def update_expense(expense_id: int, body: ExpenseUpdate, current_user=Depends(require_user),
                   s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    e, member = _load_expense(repo, expense_id, current_user["id"])
    if e.payer_id != current_user["id"]:
        require_permission(member, "can_edit_expenses")

    current = repo.splits([e.id])[e.id]
    resplit = body.amount is not None or body.split_method is not None or body.splits is not None
    if resplit and any(sp.settled for sp in current):
        raise HTTPException(409, "Expense has settled splits; amounts can no longer change")

    if body.payer_id is not None:
        if not repo.get_member(e.group_id, body.payer_id):
            raise HTTPException(422, "Payer must be a member of the group")
        e.payer_id = body.payer_id
    if body.description is not None:
        e.description = body.description.strip()
    if body.category is not None:
        e.category = body.category
    if body.date is not None:
        e.date = body.date
    if body.notes is not None:
        e.notes = body.notes

    if resplit:
        amount = body.amount if body.amount is not None else e.amount
        method = body.split_method or e.split_method
        entries = body.splits
        if entries is None:
            entries = [SplitEntryIn(user_id=sp.user_id, amount=sp.amount, percentage=sp.percentage,
                                    shares=sp.shares) for sp in current]
        shares = _build_split(repo, e.group_id, amount, method, entries)
        e.amount = amount
        e.split_method = method
        repo.replace_splits(e, shares)

    e.updated_at = datetime.utcnow()
    s.add(e)
    _touch(s, member)
    s.commit()
    s.refresh(e)
    return _render(repo, e)


@router.delete("/expenses/{expense_id}")
def delete_expense(expense_id: int, current_user=Depends(require_user), s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    e, member = _load_expense(repo, expense_id, current_user["id"])
    if e.payer_id != current_user["id"]:
        require_permission(member, "can_delete_expenses")
    repo.replace_splits(e, [])
    s.flush()
    s.delete(e)
    s.commit()
    logger.info("expense %s deleted by user %s", expense_id, current_user["id"])
    return {"status": "ok"}


@router.patch("/expenses/{expense_id}/settle")
def settle_split(expense_id: int, body: SettleRequest, current_user=Depends(require_user),
                 s: Session = Depends(get_session)):
    repo = GroupRepository(s)
    e, member = _load_expense(repo, expense_id, current_user["id"])
    split = next((sp for sp in repo.splits([e.id])[e.id] if sp.user_id == body.user_id), None)
    if not split:
        raise HTTPException(404, "User is not part of this expense split")
    split.settled = True
    s.add(split)
    _touch(s, member)
    s.commit()
    return _render(repo, e)
