"""Async HTTP client for the account endpoints.

Mutating calls are sent once. The only retries are the profile refresh, which
is a read, and a promo redemption whose connection was never established.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

PROFILE_REFRESH_ATTEMPTS = 3
PROFILE_REFRESH_BASE_DELAY_SECONDS = 0.5
PROMO_CONNECT_ATTEMPTS = 3


class ApiClientError(Exception):
    def __init__(self, *, status_code: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiClientError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return cls(
            status_code=response.status_code,
            code=str(payload.get("code") or "E_HTTP"),
            message=str(payload.get("error") or response.reason_phrase or "Request failed"),
        )


class AccessZoneClient:
    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )
        self._sleep = sleep

    async def __aenter__(self) -> AccessZoneClient:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._http.request(method, path, json=json, params=params)
        if response.status_code >= 400:
            raise ApiClientError.from_response(response)
        return response.json()

    async def get_profile(self) -> dict[str, Any]:
        return await self._request("GET", "/api/profile")

    async def refresh_profile(self) -> dict[str, Any]:
        """Fetch the profile, retrying transport failures with exponential backoff."""
        delay = PROFILE_REFRESH_BASE_DELAY_SECONDS
        for attempt in range(1, PROFILE_REFRESH_ATTEMPTS + 1):
            try:
                return await self.get_profile()
            except httpx.TransportError as exc:
                if attempt == PROFILE_REFRESH_ATTEMPTS:
                    raise
                logger.warning(
                    "profile_refresh_retry",
                    attempt=attempt,
                    delay_seconds=delay,
                    error_type=type(exc).__name__,
                )
                await self._sleep(delay)
                delay *= 2
        raise RuntimeError("unreachable")

    async def list_transactions(self, *, limit: int = 500) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/transactions", params={"limit": limit})

    async def check_points(self) -> dict[str, Any]:
        return await self._request("GET", "/api/points/check")

    async def repair_points(self) -> dict[str, Any]:
        return await self._request("POST", "/api/points/repair")

    async def redeem_promo(self, code: str) -> dict[str, Any]:
        for attempt in range(1, PROMO_CONNECT_ATTEMPTS + 1):
            try:
                return await self._request("POST", "/api/promo/redeem", json={"code": code})
            except httpx.ConnectError:
                # the request never reached the server, so it cannot have been applied
                if attempt == PROMO_CONNECT_ATTEMPTS:
                    raise
                logger.warning("promo_redeem_connect_retry", attempt=attempt)
        raise RuntimeError("unreachable")

    async def list_promo_redemptions(self, *, limit: int = 20) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/promo/redemptions", params={"limit": limit})

    async def create_redemption(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/redemptions", json=payload)

    async def list_redemptions(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/redemptions")

    async def leaderboard(self, *, limit: int = 10) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/leaderboard", params={"limit": limit})

    async def quiz_limit(self) -> dict[str, Any]:
        return await self._request("GET", "/api/tasks/quiz/limit")

    async def complete_quiz(
        self,
        *,
        difficulty: str,
        category: str,
        correct_answers: int,
        total_questions: int,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/api/tasks/quiz/complete",
            json={
                "difficulty": difficulty,
                "category": category,
                "correct_answers": correct_answers,
                "total_questions": total_questions,
            },
        )

    async def check_in(self) -> dict[str, Any]:
        return await self._request("POST", "/api/tasks/check-in")
