from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BOOLEAN, CheckConstraint, DateTime, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from access_zone.db.models.base import Base


class SubscriptionAvailability(Base):
    __tablename__ = "subscription_availability"
    __table_args__ = (
        CheckConstraint(
            "points_cost IS NULL OR points_cost > 0",
            name="ck_subscription_availability_points_cost_positive",
        ),
        UniqueConstraint(
            "subscription_id",
            "duration",
            name="uq_subscription_availability_subscription_duration",
        ),
        Index("idx_subscription_availability_in_stock", "in_stock"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    subscription_id: Mapped[str] = mapped_column(String(64), nullable=False)
    duration: Mapped[str] = mapped_column(String(32), nullable=False)
    points_cost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    in_stock: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'other'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
