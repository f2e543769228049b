"""Plan change audit log."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formwise.models._base import Base

if TYPE_CHECKING:
    from formwise.models.usage_account import UsageAccount


class PlanChange(Base):
    """One plan transition of a usage account. Append-only."""

    __tablename__ = "plan_change"

    usage_account_id: Mapped[UUID] = mapped_column(
        ForeignKey("usage_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    plan: Mapped[str] = mapped_column(String, nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False, server_default="plan_change")

    usage_account: Mapped["UsageAccount"] = relationship(
        "UsageAccount",
        back_populates="plan_changes",
        lazy="noload",
    )

    __table_args__ = (
        UniqueConstraint("usage_account_id", "position", name="uq_plan_change_position"),
    )
