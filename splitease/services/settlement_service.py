# splitease/services/settlement_service.py
from typing import Dict, List

from splitease.utils import TOLERANCE, is_zero, round_currency


def suggest_settlements(nets: Dict[int, float]) -> List[dict]:
    """
    Greedy debtor/creditor matching over a balance map.

    Debtors are walked from the largest debt down, creditors from the largest
    credit down; each step moves as much as the smaller side allows. Sorting
    is stable, so equal balances keep their order in ``nets`` and the output
    is deterministic. Produces at most one transfer fewer than the number of
    non-zero balances.
    """
    debtors = sorted([[uid, amt] for uid, amt in nets.items() if amt < 0 and not is_zero(amt)],
                     key=lambda x: x[1])
    creditors = sorted([[uid, amt] for uid, amt in nets.items() if amt > 0 and not is_zero(amt)],
                       key=lambda x: x[1], reverse=True)

    i = j = 0
    settlements = []
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = min(abs(debtor[1]), creditor[1])
        if amount > TOLERANCE:
            settlements.append({"from": debtor[0], "to": creditor[0], "amount": round_currency(amount)})
        debtor[1] += amount
        creditor[1] -= amount
        if is_zero(debtor[1]):
            i += 1
        if is_zero(creditor[1]):
            j += 1
    return settlements
