from __future__ import annotations

import secrets
from datetime import datetime, timezone

from access_zone.services.promo_codes import normalize_promo_code

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_BATCH_SIZE = 1000


def generate_raw_codes(
    *,
    count: int,
    token_length: int = 8,
    prefix: str = "",
    existing_codes: set[str] | None = None,
) -> list[str]:
    if count <= 0 or count > MAX_BATCH_SIZE:
        raise ValueError(f"count must be between 1 and {MAX_BATCH_SIZE}")
    if token_length < 4:
        raise ValueError("token_length must be at least 4")

    normalized_prefix = normalize_promo_code(prefix)
    taken = existing_codes if existing_codes is not None else set()
    generated: list[str] = []
    attempts = 0
    max_attempts = max(100, count * 50)

    while len(generated) < count:
        attempts += 1
        if attempts > max_attempts:
            raise RuntimeError("unable to generate unique promo codes")

        token = "".join(secrets.choice(CODE_ALPHABET) for _ in range(token_length))
        code = f"{normalized_prefix}{token}"
        if code in taken:
            continue

        taken.add(code)
        generated.append(code)

    return generated


def parse_utc_datetime(value: str | None) -> datetime | None:
    if value is None or not value.strip():
        return None
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
