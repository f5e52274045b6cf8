# splitease/services/split_service.py
import logging
from typing import Iterable, List, Optional, Sequence

from splitease.errors import InvalidSplitError, SplitIntegrityError
from splitease.models.expense import SplitMethod
from splitease.models.ledger import SplitShare
from splitease.utils import amounts_equal, round_currency

logger = logging.getLogger(__name__)


def _equal(amount: float, splits: List[SplitShare]) -> None:
    per_person = round_currency(amount / len(splits))
    for s in splits:
        s.amount = per_person


def _percentage(amount: float, splits: List[SplitShare]) -> None:
    for s in splits:
        if s.percentage is not None:
            s.amount = round_currency(amount * s.percentage / 100)


def _shares(amount: float, splits: List[SplitShare]) -> None:
    total_shares = sum(s.shares or 0 for s in splits)
    if total_shares <= 0:
        # nothing to weigh by; leave supplied amounts alone
        return
    for s in splits:
        if s.shares is not None:
            s.amount = round_currency(amount * s.shares / total_shares)


def _custom(amount: float, splits: List[SplitShare]) -> None:
    pass


_CALCULATORS = {
    SplitMethod.equal: _equal,
    SplitMethod.percentage: _percentage,
    SplitMethod.shares: _shares,
    SplitMethod.custom: _custom,
}


def resolve_split(amount: float, method, participants: Sequence[SplitShare]) -> List[SplitShare]:
    """
    Compute each participant's amount for an expense.

    Returns a new list; the given participants are left untouched. Every
    amount is rounded to cents on its own, so an equal split of 10 between
    three people yields 3.33 each and the total drifts by a cent. That drift
    is accepted by the 0.01 tolerance of ``validate_split``.
    """
    if amount is None or amount <= 0:
        raise InvalidSplitError("Amount must be greater than zero")
    if not participants:
        raise InvalidSplitError("At least one participant is required")
    try:
        method = SplitMethod(method)
    except ValueError:
        raise InvalidSplitError(f"Unknown split method: {method}")

    splits = [
        SplitShare(user_id=p.user_id, amount=p.amount or 0.0, percentage=p.percentage,
                   shares=p.shares, settled=p.settled)
        for p in participants
    ]
    _CALCULATORS[method](amount, splits)
    logger.debug("resolved %s split of %.2f over %d participants", method.value, amount, len(splits))
    return splits


def validate_split(amount: float, method, splits: Sequence[SplitShare],
                   member_ids: Optional[Iterable[int]] = None) -> None:
    """Check a resolved split before it is stored."""
    method = SplitMethod(method)
    if amount < 0.01:
        raise InvalidSplitError("Amount must be at least 0.01")
    if not splits:
        raise InvalidSplitError("At least one participant is required")

    user_ids = [s.user_id for s in splits]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidSplitError("A participant can appear only once in a split")
    if member_ids is not None:
        allowed = set(member_ids)
        strangers = [uid for uid in user_ids if uid not in allowed]
        if strangers:
            raise InvalidSplitError(f"Participants are not group members: {strangers}")

    if method == SplitMethod.percentage:
        for s in splits:
            if s.percentage is not None and not 0 <= s.percentage <= 100:
                raise InvalidSplitError("Percentages must be between 0 and 100")
        total_pct = sum(s.percentage or 0 for s in splits)
        if not amounts_equal(total_pct, 100):
            raise InvalidSplitError("Split percentages must sum up to 100%")

    if method == SplitMethod.shares:
        if any(s.shares is None or s.shares < 0 for s in splits):
            raise InvalidSplitError("All shares must be non-negative")

    total = sum(s.amount for s in splits)
    if abs(total - amount) > 0.01 + 1e-9:
        raise SplitIntegrityError(
            f"Split amounts must sum up to the total amount ({total:.2f} != {amount:.2f})")
