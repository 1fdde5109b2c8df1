from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from access_zone.client.api_client import AccessZoneClient
from access_zone.economy.ledger.types import BalanceCheck

logger = structlog.get_logger(__name__)

DEFAULT_MONITOR_INTERVAL_SECONDS = 300.0


@dataclass(slots=True)
class AccountState:
    profile: dict[str, Any] | None = None
    transactions: list[dict[str, Any]] = field(default_factory=list)
    last_check: BalanceCheck | None = None
    last_checked_at: datetime | None = None


class AccountStore:
    """Explicit holder of the signed-in account's profile and ledger."""

    def __init__(self, client: AccessZoneClient) -> None:
        self._client = client
        self.state = AccountState()

    @property
    def points(self) -> int:
        if self.state.profile is None:
            return 0
        return int(self.state.profile.get("points", 0))

    async def refresh(self) -> dict[str, Any]:
        profile = await self._client.refresh_profile()
        self.state.profile = profile
        self.state.transactions = await self._client.list_transactions()
        return profile

    async def balance_check(self) -> BalanceCheck:
        # transaction listings are capped, so the server sums the full ledger
        payload = await self._client.check_points()
        check = BalanceCheck(
            cached=int(payload["cached"]),
            expected=int(payload["expected"]),
            total_earned=int(payload["total_earned"]),
            difference=int(payload["difference"]),
            threshold=int(payload["threshold"]),
            flagged=bool(payload["flagged"]),
        )
        self.state.last_check = check
        self.state.last_checked_at = datetime.now(timezone.utc)
        return check

    async def repair(self) -> dict[str, Any]:
        result = await self._client.repair_points()
        self.state.profile = result["profile"]
        self.state.transactions = await self._client.list_transactions()
        self.state.last_check = None
        self.state.last_checked_at = None
        logger.info(
            "account_points_repaired",
            old_points=result["old_points"],
            new_points=result["new_points"],
        )
        return result

    async def redeem_promo(self, code: str) -> dict[str, Any]:
        result = await self._client.redeem_promo(code)
        if self.state.profile is not None:
            self.state.profile["points"] = result["new_balance"]
        return result

    async def create_redemption(self, payload: dict[str, Any]) -> dict[str, Any]:
        request = await self._client.create_redemption(payload)
        await self.refresh()
        return request


class BalanceMonitor:
    def __init__(
        self,
        store: AccountStore,
        *,
        interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS,
        auto_repair: bool = False,
    ) -> None:
        self._store = store
        self._interval_seconds = interval_seconds
        self._auto_repair = auto_repair

    async def check_once(self) -> BalanceCheck:
        await self._store.refresh()
        check = await self._store.balance_check()
        if check.flagged:
            logger.warning(
                "account_balance_discrepancy",
                cached=check.cached,
                expected=check.expected,
                difference=check.difference,
            )
            if self._auto_repair:
                await self._store.repair()
        return check

    async def run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.check_once()
            except Exception:
                logger.exception("account_balance_check_failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                continue
