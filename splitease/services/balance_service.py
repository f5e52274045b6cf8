# splitease/services/balance_service.py
import logging
from typing import Dict, Iterable

from splitease.models.ledger import LedgerExpense
from splitease.utils import round_currency

logger = logging.getLogger(__name__)


def compute_group_balances(member_ids: Iterable[int], expenses: Iterable[LedgerExpense],
                           include_settled: bool = True) -> Dict[int, float]:
    """
    Net position of every current member: positive is owed money, negative owes.

    The payer is credited with the full amount and every split entry is
    debited from its participant. Anyone no longer in ``member_ids`` is
    skipped on both sides, so their part is dropped rather than handed to
    someone else.

    With ``include_settled=False`` settled entries are left out and the
    payer's credit shrinks by the same amount, so balances still sum to zero.
    """
    nets = {uid: 0.0 for uid in member_ids}

    for e in expenses:
        credit = e.amount
        for s in e.splits:
            if s.settled and not include_settled:
                credit -= s.amount
                continue
            if s.user_id in nets:
                nets[s.user_id] -= s.amount
            else:
                logger.debug("expense %s: dropping share of former member %s", e.id, s.user_id)
        if e.payer_id in nets:
            nets[e.payer_id] += credit
        else:
            logger.debug("expense %s: dropping credit of former member %s", e.id, e.payer_id)

    for k in nets:
        nets[k] = round_currency(nets[k])
    return nets
