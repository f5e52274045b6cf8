from splitease.models.ledger import LedgerExpense, SplitShare
from splitease.services.balance_service import compute_group_balances
from splitease.services.split_service import resolve_split

A, B, C, D = 1, 2, 3, 4


def expense(payer, amount, *participants, method="equal", eid=None):
    splits = resolve_split(amount, method, [SplitShare(user_id=p) for p in participants])
    return LedgerExpense(id=eid, payer_id=payer, amount=amount, splits=splits)


def test_single_equal_expense():
    nets = compute_group_balances([A, B, C], [expense(A, 90, A, B, C)])
    assert nets == {A: 60.0, B: -30.0, C: -30.0}


def test_members_without_expenses_start_at_zero():
    nets = compute_group_balances([A, B, C, D], [expense(A, 20, A, B)])
    assert nets == {A: 10.0, B: -10.0, C: 0.0, D: 0.0}


def test_balances_sum_to_zero():
    expenses = [
        expense(A, 90, A, B, C),
        expense(B, 45.5, A, B),
        expense(C, 10, A, B, C),
        expense(D, 123.45, A, B, C, D),
        LedgerExpense(id=5, payer_id=A, amount=50,
                      splits=[SplitShare(user_id=C, amount=20), SplitShare(user_id=D, amount=30)]),
    ]
    nets = compute_group_balances([A, B, C, D], expenses)
    assert abs(sum(nets.values())) < 0.01 * len(expenses)


def test_payer_who_left_is_dropped():
    nets = compute_group_balances([B, C], [expense(A, 90, A, B, C)])
    assert nets == {B: -30.0, C: -30.0}


def test_participant_who_left_is_dropped():
    nets = compute_group_balances([A, B], [expense(A, 90, A, B, C)])
    assert nets == {A: 60.0, B: -30.0}


def test_settled_splits_count_by_default():
    e = expense(A, 90, A, B, C)
    e.splits[1].settled = True
    nets = compute_group_balances([A, B, C], [e])
    assert nets == {A: 60.0, B: -30.0, C: -30.0}


def test_settled_splits_can_be_left_out():
    e = expense(A, 90, A, B, C)
    e.splits[1].settled = True
    nets = compute_group_balances([A, B, C], [e], include_settled=False)
    assert nets == {A: 30.0, B: 0.0, C: -30.0}
    assert sum(nets.values()) == 0


def test_same_input_gives_same_output():
    expenses = [expense(A, 10, A, B, C), expense(B, 33.33, A, C)]
    first = compute_group_balances([A, B, C], expenses)
    second = compute_group_balances([A, B, C], expenses)
    assert first == second


def test_results_are_rounded_to_cents():
    nets = compute_group_balances([A, B, C], [expense(A, 10, A, B, C)])
    assert nets == {A: 6.67, B: -3.33, C: -3.33}


def test_no_expenses():
    assert compute_group_balances([A, B], []) == {A: 0.0, B: 0.0}


def test_single_expense_balances_sum_to_zero_within_a_cent():
    for amount, people in [(10, (A, B, C)), (100, (A, B, C)), (123.45, (A, B, C, D)), (0.05, (A, B, C))]:
        nets = compute_group_balances([A, B, C, D], [expense(B, amount, *people)])
        assert abs(sum(nets.values())) <= 0.01 + 1e-9
