"""Archived usage of a finished accounting period."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formwise.models._base import Base

if TYPE_CHECKING:
    from formwise.models.usage_account import UsageAccount


class UsagePeriodSnapshot(Base):
    """Counters and plan of a usage account at rollover time. Append-only."""

    __tablename__ = "usage_period_snapshot"

    usage_account_id: Mapped[UUID] = mapped_column(
        ForeignKey("usage_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Zero-based insertion order within the account
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    period_key: Mapped[str] = mapped_column(String(7), nullable=False)
    analysis: Mapped[int] = mapped_column(Integer, nullable=False)
    generation: Mapped[int] = mapped_column(Integer, nullable=False)
    ocr: Mapped[int] = mapped_column(Integer, nullable=False)
    plan: Mapped[str] = mapped_column(String, nullable=False)

    usage_account: Mapped["UsageAccount"] = relationship(
        "UsageAccount",
        back_populates="history",
        lazy="noload",
    )

    __table_args__ = (
        UniqueConstraint("usage_account_id", "position", name="uq_usage_period_snapshot_position"),
    )
