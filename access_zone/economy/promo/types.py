from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class PromoRedeemResult:
    redemption_id: UUID
    promo_code_id: UUID
    code: str
    points_awarded: int
    new_balance: int
    message: str


@dataclass(slots=True)
class PromoCodeDraft:
    code: str
    points: int
    description: str | None = None
    max_uses: int | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True
