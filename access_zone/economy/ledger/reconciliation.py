"""Pure balance reconciliation over a user's transaction history.

The cached ``points`` on a profile is only a convenience copy; the ledger of
earn/redeem transactions is the source of truth. Everything here works on any
object exposing ``type`` and ``points`` so that ORM rows and the client's
decoded JSON share one implementation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from access_zone.economy.ledger.types import BalanceCheck

EARN = "earn"
REDEEM = "redeem"


class LedgerRecord(Protocol):
    type: str
    points: int


def ledger_totals(history: Iterable[LedgerRecord]) -> tuple[int, int]:
    earned = 0
    redeemed = 0
    for entry in history:
        if entry.type == EARN:
            earned += int(entry.points)
        elif entry.type == REDEEM:
            redeemed += int(entry.points)
    return earned, redeemed


def expected_from_totals(earned: int, redeemed: int) -> int:
    return max(0, earned - redeemed)


def compute_expected_balance(history: Iterable[LedgerRecord]) -> int:
    earned, redeemed = ledger_totals(history)
    return expected_from_totals(earned, redeemed)


def compute_total_earned(history: Iterable[LedgerRecord]) -> int:
    earned, _ = ledger_totals(history)
    return earned


def check_totals(*, cached_points: int, earned: int, redeemed: int, threshold: int) -> BalanceCheck:
    expected = expected_from_totals(earned, redeemed)
    difference = cached_points - expected
    return BalanceCheck(
        cached=cached_points,
        expected=expected,
        total_earned=earned,
        difference=difference,
        threshold=threshold,
        flagged=abs(difference) > threshold,
    )


def check_balance(
    cached_points: int,
    history: Iterable[LedgerRecord],
    threshold: int,
) -> BalanceCheck:
    """Compare the cached balance with the ledger.

    Only a difference strictly greater than ``threshold`` is flagged, so small
    transient gaps (an in-flight write seen half-way) stay quiet.
    """
    if threshold < 0:
        raise ValueError("threshold must be non-negative")
    earned, redeemed = ledger_totals(history)
    return check_totals(
        cached_points=cached_points,
        earned=earned,
        redeemed=redeemed,
        threshold=threshold,
    )
