from datetime import datetime, timedelta

from splitease.models.group import GroupMember
from splitease.models.ledger import LedgerExpense
from splitease.services.stats_service import compute_group_statistics

NOW = datetime(2026, 10, 18, 12, 0)


def test_group_statistics():
    expenses = [
        LedgerExpense(id=1, payer_id=1, amount=30, category="food", date=datetime(2026, 10, 1)),
        LedgerExpense(id=2, payer_id=2, amount=90, category="rent", date=datetime(2026, 9, 15)),
        LedgerExpense(id=3, payer_id=1, amount=10, category="other", date=datetime(2025, 1, 1)),
    ]
    members = [
        GroupMember(group_id=1, user_id=1, last_active=NOW - timedelta(days=5)),
        GroupMember(group_id=1, user_id=2, last_active=NOW - timedelta(days=40)),
        GroupMember(group_id=1, user_id=3, last_active=NOW, left_at=NOW),
    ]
    stats = compute_group_statistics(expenses, members, now=NOW)

    assert stats["total_expenses"] == 3
    assert stats["total_amount"] == 130.0
    assert stats["average_amount"] == 43.33
    assert stats["categories"] == {"food": 30.0, "rent": 90.0, "other": 10.0}
    assert list(stats["monthly_trend"]) == ["2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10"]
    assert stats["monthly_trend"]["2026-10"] == 30.0
    assert stats["monthly_trend"]["2026-09"] == 90.0
    assert list(stats["top_spenders"].items()) == [(2, 90.0), (1, 40.0)]
    assert stats["active_members"] == 1


def test_trend_crosses_year_boundary():
    stats = compute_group_statistics([], [], now=datetime(2026, 2, 3))
    assert list(stats["monthly_trend"]) == ["2025-09", "2025-10", "2025-11", "2025-12", "2026-01", "2026-02"]
    assert stats["average_amount"] == 0.0
