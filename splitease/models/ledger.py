"""
Plain ledger objects handed to the balance and settlement functions.

The repository resolves database rows into these so the core never touches
a session.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class SplitShare:
    """One participant's part of an expense"""
    user_id: int
    amount: float = 0.0
    percentage: Optional[float] = None
    shares: Optional[float] = None
    settled: bool = False


@dataclass
class LedgerExpense:
    """Expense with its resolved split list"""
    id: Optional[int]
    payer_id: int
    amount: float
    splits: List[SplitShare] = field(default_factory=list)
    category: str = "other"
    date: Optional[datetime] = None
