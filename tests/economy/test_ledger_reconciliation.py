import pytest

from access_zone.economy.ledger.reconciliation import (
    check_balance,
    compute_expected_balance,
    compute_total_earned,
    ledger_totals,
)
from access_zone.economy.ledger.types import LedgerLine


def _history(*lines: tuple[str, int]) -> list[LedgerLine]:
    return [LedgerLine(type=type_, points=points) for type_, points in lines]


def test_expected_balance_is_earned_minus_redeemed() -> None:
    history = _history(("earn", 100), ("earn", 50), ("redeem", 30))

    assert ledger_totals(history) == (150, 30)
    assert compute_expected_balance(history) == 120
    assert compute_total_earned(history) == 150


def test_expected_balance_is_clamped_at_zero() -> None:
    history = _history(("earn", 20), ("redeem", 50))

    assert compute_expected_balance(history) == 0


def test_unknown_transaction_types_are_ignored() -> None:
    history = _history(("earn", 10), ("bonus", 999))

    assert compute_expected_balance(history) == 10


def test_empty_history_expects_zero() -> None:
    assert compute_expected_balance([]) == 0
    assert check_balance(0, [], threshold=10).flagged is False


def test_difference_within_threshold_is_not_flagged() -> None:
    history = _history(("earn", 100))

    check = check_balance(110, history, threshold=10)

    assert check.expected == 100
    assert check.difference == 10
    assert check.flagged is False


def test_difference_above_threshold_is_flagged_in_both_directions() -> None:
    history = _history(("earn", 100))

    assert check_balance(111, history, threshold=10).flagged is True
    below = check_balance(50, history, threshold=10)
    assert below.flagged is True
    assert below.difference == -50


def test_zero_threshold_flags_any_gap() -> None:
    history = _history(("earn", 100))

    assert check_balance(101, history, threshold=0).flagged is True
    assert check_balance(100, history, threshold=0).flagged is False


def test_negative_threshold_is_rejected() -> None:
    with pytest.raises(ValueError):
        check_balance(0, [], threshold=-1)
