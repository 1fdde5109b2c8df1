from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from access_zone.db.models.base import Base


class RedemptionRequest(Base):
    __tablename__ = "redemption_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','completed','failed','cancelled')",
            name="ck_redemption_requests_status",
        ),
        CheckConstraint("points_cost > 0", name="ck_redemption_requests_points_cost_positive"),
        CheckConstraint(
            "status <> 'completed' OR (activation_code IS NOT NULL AND expires_at IS NOT NULL)",
            name="ck_redemption_requests_completed_payload",
        ),
        Index("idx_redemption_requests_user_created", "user_id", "created_at"),
        Index("idx_redemption_requests_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    subscription_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subscription_name: Mapped[str] = mapped_column(String(128), nullable=False)
    duration: Mapped[str] = mapped_column(String(32), nullable=False)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    user_email: Mapped[str] = mapped_column(Text, nullable=False)
    user_country: Mapped[str] = mapped_column(String(64), nullable=False)
    user_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    activation_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
