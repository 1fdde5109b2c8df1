from __future__ import annotations

import argparse
import asyncio
import csv
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID

from access_zone.db.session import SessionLocal
from access_zone.economy.promo.batch import generate_raw_codes, parse_utc_datetime
from access_zone.economy.promo.errors import PromoCodeConflictError
from access_zone.economy.promo.service import PromoService
from access_zone.economy.promo.types import PromoCodeDraft
from access_zone.services.promo_codes import normalize_promo_code


@dataclass(slots=True)
class RawPromo:
    raw_code: str
    normalized_code: str
    promo_code_id: UUID | None = None


def _load_raw_codes_from_csv(path: Path) -> list[str]:
    rows: list[str] = []
    with path.open("r", encoding="utf-8", newline="") as file:
        reader = csv.DictReader(file)
        if "raw_code" in (reader.fieldnames or []):
            for row in reader:
                raw = (row.get("raw_code") or "").strip()
                if raw:
                    rows.append(raw)
            return rows

    with path.open("r", encoding="utf-8", newline="") as file:
        for line in file:
            raw = line.strip()
            if raw:
                rows.append(raw)
    return rows


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Promo code batch generation/import tool")
    parser.add_argument("--points", type=int, required=True)
    parser.add_argument("--description")
    parser.add_argument("--starts-at", help="ISO datetime")
    parser.add_argument("--expires-at", help="ISO datetime")
    parser.add_argument("--max-uses", type=int, default=1)
    parser.add_argument("--unlimited", action="store_true", help="no usage limit per code")
    parser.add_argument("--inactive", action="store_true")
    parser.add_argument("--created-by", type=UUID)
    parser.add_argument("--import-csv", type=Path)
    parser.add_argument("--count", type=int)
    parser.add_argument("--prefix", default="")
    parser.add_argument("--token-length", type=int, default=8)
    parser.add_argument("--output-csv", type=Path)
    parser.add_argument("--dry-run", action="store_true")
    return parser.parse_args(argv)


def _validate_args(args: argparse.Namespace) -> None:
    if args.import_csv and args.count:
        raise ValueError("use either --import-csv or --count")
    if not args.import_csv and not args.count:
        raise ValueError("one of --import-csv or --count is required")
    if args.points <= 0:
        raise ValueError("--points must be positive")
    if not args.unlimited and args.max_uses <= 0:
        raise ValueError("--max-uses must be positive")

    starts_at = parse_utc_datetime(args.starts_at)
    expires_at = parse_utc_datetime(args.expires_at)
    if starts_at is not None and expires_at is not None and expires_at <= starts_at:
        raise ValueError("--expires-at must be greater than --starts-at")


def _build_batch(args: argparse.Namespace) -> list[RawPromo]:
    if args.import_csv:
        raw_codes = _load_raw_codes_from_csv(args.import_csv)
    else:
        raw_codes = generate_raw_codes(
            count=args.count,
            token_length=args.token_length,
            prefix=args.prefix,
        )

    if not raw_codes:
        raise ValueError("no promo codes to process")

    seen_normalized: set[str] = set()
    batch: list[RawPromo] = []
    for raw_code in raw_codes:
        normalized_code = normalize_promo_code(raw_code)
        if not normalized_code:
            raise ValueError(f"promo code '{raw_code}' becomes empty after normalization")
        if normalized_code in seen_normalized:
            raise ValueError(f"duplicate promo code in batch: {raw_code}")
        seen_normalized.add(normalized_code)
        batch.append(RawPromo(raw_code=raw_code, normalized_code=normalized_code))
    return batch


def _draft_for(args: argparse.Namespace, code: str) -> PromoCodeDraft:
    return PromoCodeDraft(
        code=code,
        points=args.points,
        description=args.description,
        max_uses=None if args.unlimited else args.max_uses,
        starts_at=parse_utc_datetime(args.starts_at),
        expires_at=parse_utc_datetime(args.expires_at),
        is_active=not args.inactive,
    )


async def _insert_batch(args: argparse.Namespace, batch: list[RawPromo]) -> None:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        for item in batch:
            try:
                promo_code = await PromoService.add_code(
                    session,
                    draft=_draft_for(args, item.normalized_code),
                    created_by=args.created_by,
                    now_utc=now_utc,
                )
            except PromoCodeConflictError as exc:
                raise ValueError(f"promo code already exists: {item.raw_code}") from exc
            item.promo_code_id = promo_code.id


def _write_output(path: Path, batch: list[RawPromo]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["raw_code", "promo_code_id", "normalized_code"])
        for item in batch:
            writer.writerow([item.raw_code, item.promo_code_id or "", item.normalized_code])


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _validate_args(args)
    batch = _build_batch(args)

    if not args.dry_run:
        await _insert_batch(args, batch)

    output_csv = args.output_csv or Path("reports/promo_batch_output.csv")
    _write_output(output_csv, batch)
    print(
        f"processed={len(batch)} inserted={0 if args.dry_run else len(batch)} output={output_csv}"  # noqa: T201
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
