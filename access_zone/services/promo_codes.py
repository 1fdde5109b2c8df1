from __future__ import annotations

import re

_PROMO_NORMALIZE_PATTERN = re.compile(r"[\s-]+")


def normalize_promo_code(raw_code: str | None) -> str:
    if raw_code is None:
        return ""
    normalized = raw_code.strip().upper()
    return _PROMO_NORMALIZE_PATTERN.sub("", normalized)


def promo_transaction_description(code: str, description: str | None) -> str:
    if description:
        return f"Promo code: {code} - {description}"
    return f"Promo code: {code}"
