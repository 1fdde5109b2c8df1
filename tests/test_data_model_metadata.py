from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from access_zone.db.models import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name
        for constraint in table.constraints
        if isinstance(constraint, CheckConstraint)
    }


def _unique_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }


def test_all_tables_registered() -> None:
    assert set(Base.metadata.tables) == {
        "profiles",
        "transactions",
        "points_audit_log",
        "tasks",
        "promo_codes",
        "promo_code_redemptions",
        "redemption_requests",
        "subscription_availability",
    }


def test_critical_constraints_present() -> None:
    assert {
        "ck_profiles_points_non_negative",
        "ck_profiles_total_earned_non_negative",
        "ck_profiles_status",
    } <= _check_names("profiles")
    assert {"ck_transactions_type", "ck_transactions_points_positive"} <= _check_names(
        "transactions"
    )
    assert "ck_redemption_requests_status" in _check_names("redemption_requests")
    assert "ck_redemption_requests_completed_payload" in _check_names("redemption_requests")
    assert "uq_promo_codes_code" in _unique_names("promo_codes")
    assert "uq_promo_code_redemptions_user_code" in _unique_names("promo_code_redemptions")
    assert "uq_subscription_availability_subscription_duration" in _unique_names(
        "subscription_availability"
    )


def test_user_owned_tables_cascade_from_profiles() -> None:
    for table_name in (
        "transactions",
        "points_audit_log",
        "tasks",
        "promo_code_redemptions",
        "redemption_requests",
    ):
        table = Base.metadata.tables[table_name]
        [foreign_key] = [fk for fk in table.c.user_id.foreign_keys]
        assert foreign_key.column.table.name == "profiles"
        assert foreign_key.ondelete == "CASCADE"
