"""Usage account model for tracking a tenant's monthly metered usage."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formwise.models._base import Base

if TYPE_CHECKING:
    from formwise.models.plan_change import PlanChange
    from formwise.models.usage_period_snapshot import UsagePeriodSnapshot


class UsageAccount(Base):
    """One row per tenant: current-period counters, plan, and period bounds.

    Limits are not stored; they are derived from ``plan``.
    """

    __tablename__ = "usage_account"

    tenant_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    # Current-period counters
    analysis: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    generation: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    ocr: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    plan: Mapped[str] = mapped_column(String, nullable=False, server_default="free")

    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    current_period_key: Mapped[str] = mapped_column(String(7), nullable=False)

    history: Mapped[list["UsagePeriodSnapshot"]] = relationship(
        "UsagePeriodSnapshot",
        back_populates="usage_account",
        lazy="noload",
        cascade="all, delete-orphan",
    )

    plan_changes: Mapped[list["PlanChange"]] = relationship(
        "PlanChange",
        back_populates="usage_account",
        lazy="noload",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # Rollover sweeps select accounts still on an old period
        Index("ix_usage_account_current_period_key", "current_period_key"),
        CheckConstraint(
            "analysis >= 0 AND generation >= 0 AND ocr >= 0",
            name="ck_usage_account_counts_non_negative",
        ),
    )
