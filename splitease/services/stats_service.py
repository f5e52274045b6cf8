# splitease/services/stats_service.py
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from splitease.models.group import GroupMember
from splitease.models.ledger import LedgerExpense
from splitease.utils import round_currency

ACTIVE_WINDOW = timedelta(days=30)
TREND_MONTHS = 6


def _month_keys(now: datetime, months: int) -> List[str]:
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def compute_group_statistics(expenses: Iterable[LedgerExpense], members: Iterable[GroupMember],
                             now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    expenses = list(expenses)

    total = sum(e.amount for e in expenses)
    by_category: Dict[str, float] = {}
    trend = {k: 0.0 for k in _month_keys(now, TREND_MONTHS)}
    spenders: Dict[int, float] = {}

    for e in expenses:
        category = e.category or "other"
        by_category[category] = by_category.get(category, 0.0) + e.amount
        if e.date is not None:
            key = e.date.strftime("%Y-%m")
            if key in trend:
                trend[key] += e.amount
        spenders[e.payer_id] = spenders.get(e.payer_id, 0.0) + e.amount

    active = [m for m in members if m.is_current and now - m.last_active <= ACTIVE_WINDOW]

    return {
        "total_expenses": len(expenses),
        "total_amount": round_currency(total),
        "average_amount": round_currency(total / len(expenses)) if expenses else 0.0,
        "categories": {k: round_currency(v) for k, v in by_category.items()},
        "monthly_trend": {k: round_currency(v) for k, v in trend.items()},
        "top_spenders": {k: round_currency(v) for k, v in sorted(spenders.items(), key=lambda x: x[1], reverse=True)},
        "active_members": len(active),
    }
