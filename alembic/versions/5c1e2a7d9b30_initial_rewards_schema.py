"""initial_rewards_schema

Revision ID: 5c1e2a7d9b30
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a7d9b30"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'active'")),
        sa.Column("suspended_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points >= 0", name="ck_profiles_points_non_negative"),
        sa.CheckConstraint("total_earned >= 0", name="ck_profiles_total_earned_non_negative"),
        sa.CheckConstraint("status IN ('active','suspended','banned')", name="ck_profiles_status"),
    )
    op.create_index("idx_profiles_points", "profiles", ["points"])
    op.create_index("idx_profiles_email", "profiles", ["email"])
    op.create_index("idx_profiles_created_at", "profiles", ["created_at"])

    op.create_table(
        "transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(8), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("task_type", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("type IN ('earn','redeem')", name="ck_transactions_type"),
        sa.CheckConstraint("points > 0", name="ck_transactions_points_positive"),
        sa.CheckConstraint("length(trim(description)) > 0", name="ck_transactions_description"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_transactions_user_created", "transactions", ["user_id", "created_at"])
    op.create_index("idx_transactions_user_type", "transactions", ["user_id", "type"])
    op.create_index("idx_transactions_created_at", "transactions", ["created_at"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("task_type", sa.String(32), nullable=False),
        sa.Column("task_id", sa.String(96), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points_earned >= 0", name="ck_tasks_points_earned_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_tasks_user_type_completed", "tasks", ["user_id", "task_type", "completed_at"])

    op.create_table(
        "points_audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("old_points", sa.Integer(), nullable=False),
        sa.Column("new_points", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(64), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_points_audit_user_changed", "points_audit_log", ["user_id", "changed_at"])

    op.create_table(
        "promo_codes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points > 0", name="ck_promo_codes_points_positive"),
        sa.CheckConstraint("current_uses >= 0", name="ck_promo_codes_current_uses_non_negative"),
        sa.CheckConstraint("max_uses IS NULL OR max_uses > 0", name="ck_promo_codes_max_uses_positive"),
        sa.CheckConstraint(
            "starts_at IS NULL OR expires_at IS NULL OR starts_at < expires_at",
            name="ck_promo_codes_window",
        ),
        sa.UniqueConstraint("code", name="uq_promo_codes_code"),
    )
    op.create_index("idx_promo_codes_created_at", "promo_codes", ["created_at"])
    op.create_index("idx_promo_codes_active", "promo_codes", ["is_active"])

    op.create_table(
        "promo_code_redemptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("promo_code_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points_earned > 0", name="ck_promo_code_redemptions_points_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["promo_code_id"], ["promo_codes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "promo_code_id", name="uq_promo_code_redemptions_user_code"),
    )
    op.create_index("idx_promo_code_redemptions_code", "promo_code_redemptions", ["promo_code_id"])
    op.create_index(
        "idx_promo_code_redemptions_user_created",
        "promo_code_redemptions",
        ["user_id", "created_at"],
    )

    op.create_table(
        "redemption_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subscription_id", sa.String(64), nullable=False),
        sa.Column("subscription_name", sa.String(128), nullable=False),
        sa.Column("duration", sa.String(32), nullable=False),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("user_email", sa.Text(), nullable=False),
        sa.Column("user_country", sa.String(64), nullable=False),
        sa.Column("user_notes", sa.Text(), nullable=True),
        sa.Column("activation_code", sa.Text(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending','completed','failed','cancelled')",
            name="ck_redemption_requests_status",
        ),
        sa.CheckConstraint("points_cost > 0", name="ck_redemption_requests_points_cost_positive"),
        sa.CheckConstraint(
            "status <> 'completed' OR (activation_code IS NOT NULL AND expires_at IS NOT NULL)",
            name="ck_redemption_requests_completed_payload",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_redemption_requests_user_created", "redemption_requests", ["user_id", "created_at"])
    op.create_index(
        "idx_redemption_requests_status_created",
        "redemption_requests",
        ["status", "created_at"],
    )

    op.create_table(
        "subscription_availability",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("subscription_id", sa.String(64), nullable=False),
        sa.Column("duration", sa.String(32), nullable=False),
        sa.Column("points_cost", sa.Integer(), nullable=True),
        sa.Column("in_stock", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("display_name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(32), nullable=False, server_default=sa.text("'other'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "points_cost IS NULL OR points_cost > 0",
            name="ck_subscription_availability_points_cost_positive",
        ),
        sa.UniqueConstraint(
            "subscription_id",
            "duration",
            name="uq_subscription_availability_subscription_duration",
        ),
    )
    op.create_index("idx_subscription_availability_in_stock", "subscription_availability", ["in_stock"])


def downgrade() -> None:
    op.drop_index("idx_subscription_availability_in_stock", table_name="subscription_availability")
    op.drop_table("subscription_availability")

    op.drop_index("idx_redemption_requests_status_created", table_name="redemption_requests")
    op.drop_index("idx_redemption_requests_user_created", table_name="redemption_requests")
    op.drop_table("redemption_requests")

    op.drop_index("idx_promo_code_redemptions_user_created", table_name="promo_code_redemptions")
    op.drop_index("idx_promo_code_redemptions_code", table_name="promo_code_redemptions")
    op.drop_table("promo_code_redemptions")

    op.drop_index("idx_promo_codes_active", table_name="promo_codes")
    op.drop_index("idx_promo_codes_created_at", table_name="promo_codes")
    op.drop_table("promo_codes")

    op.drop_index("idx_points_audit_user_changed", table_name="points_audit_log")
    op.drop_table("points_audit_log")

    op.drop_index("idx_tasks_user_type_completed", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("idx_transactions_created_at", table_name="transactions")
    op.drop_index("idx_transactions_user_type", table_name="transactions")
    op.drop_index("idx_transactions_user_created", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("idx_profiles_created_at", table_name="profiles")
    op.drop_index("idx_profiles_email", table_name="profiles")
    op.drop_index("idx_profiles_points", table_name="profiles")
    op.drop_table("profiles")
