from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from splitease.models.expense import Expense, ExpenseSplit
from splitease.models.group import Group, GroupMember
from splitease.models.ledger import LedgerExpense, SplitShare
from splitease.models.user import User


class GroupRepository:
    """Reads and writes one group's rows and hands back resolved ledger objects."""

    def __init__(self, session: Session):
        self.session = session

    def get_group(self, group_id: int) -> Optional[Group]:
        return self.session.get(Group, group_id)

    def get_member(self, group_id: int, user_id: int, include_former: bool = False) -> Optional[GroupMember]:
        stmt = select(GroupMember).where(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        member = self.session.exec(stmt).first()
        if member and not include_former and not member.is_current:
            return None
        return member

    def members(self, group_id: int, include_former: bool = False) -> List[GroupMember]:
        stmt = select(GroupMember).where(GroupMember.group_id == group_id)
        if not include_former:
            stmt = stmt.where(GroupMember.left_at == None)  # noqa: E711
        return self.session.exec(stmt.order_by(GroupMember.joined_at, GroupMember.id)).all()

    def groups_for_user(self, user_id: int) -> List[Group]:
        stmt = (select(Group).join(GroupMember, Group.id == GroupMember.group_id)
                .where(GroupMember.user_id == user_id, GroupMember.left_at == None)  # noqa: E711
                .order_by(Group.name))
        return self.session.exec(stmt).all()

    def user_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        ids = set(user_ids)
        if not ids:
            return {}
        users = self.session.exec(select(User).where(User.id.in_(ids))).all()
        return {u.id: u.name for u in users}

    def expenses(self, group_id: int, start: Optional[datetime] = None, end: Optional[datetime] = None,
                 category: Optional[str] = None) -> List[Expense]:
        stmt = select(Expense).where(Expense.group_id == group_id)
        if start is not None:
            stmt = stmt.where(Expense.date >= start)
        if end is not None:
            stmt = stmt.where(Expense.date <= end)
        if category:
            stmt = stmt.where(Expense.category == category)
        return self.session.exec(stmt.order_by(Expense.date, Expense.id)).all()

    def splits(self, expense_ids: Iterable[int]) -> Dict[int, List[ExpenseSplit]]:
        ids = list(expense_ids)
        out: Dict[int, List[ExpenseSplit]] = {eid: [] for eid in ids}
        if not ids:
            return out
        rows = self.session.exec(
            select(ExpenseSplit).where(ExpenseSplit.expense_id.in_(ids)).order_by(ExpenseSplit.id)).all()
        for row in rows:
            out[row.expense_id].append(row)
        return out

    def ledger(self, group_id: int) -> List[LedgerExpense]:
        expenses = self.expenses(group_id)
        splits = self.splits(e.id for e in expenses)
        return [to_ledger(e, splits[e.id]) for e in expenses]

    def replace_splits(self, expense: Expense, shares: Iterable[SplitShare]) -> List[ExpenseSplit]:
        for old in self.session.exec(select(ExpenseSplit).where(ExpenseSplit.expense_id == expense.id)).all():
            self.session.delete(old)
        rows = [ExpenseSplit(expense_id=expense.id, user_id=s.user_id, amount=s.amount,
                             percentage=s.percentage, shares=s.shares, settled=s.settled)
                for s in shares]
        self.session.add_all(rows)
        return rows


def to_ledger(expense: Expense, splits: Iterable[ExpenseSplit]) -> LedgerExpense:
    return LedgerExpense(
        id=expense.id,
        payer_id=expense.payer_id,
        amount=expense.amount,
        category=expense.category.value if hasattr(expense.category, "value") else expense.category,
        date=expense.date,
        splits=[SplitShare(user_id=s.user_id, amount=s.amount, percentage=s.percentage,
                           shares=s.shares, settled=s.settled) for s in splits],
    )
