from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.vendorhub.models import Base

if TYPE_CHECKING:
    from app.vendorhub.modules.commitments.models import Commitment


class Deal(Base):
    __tablename__ = "deals"
    __table_args__ = (
        UniqueConstraint("deal_number", name="uq_deals_deal_number"),
        Index("idx_deals_status", "status"),
        Index("idx_deals_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    deal_number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    retail_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payout: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_type: Mapped[str] = mapped_column(String(16), nullable=False)  # BELOW_COST, RETAIL, ABOVE_RETAIL

    max_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    limit_per_vendor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    free_label_min: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    is_exclusive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    exclusive_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    # Marketplace links
    link_amazon: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_best_buy: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_walmart: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_target: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_home_depot: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_lowes: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_other: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    link_other_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_by_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    commitments: Mapped[list["Commitment"]] = relationship(
        "Commitment",
        back_populates="deal",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def display_id(self) -> str:
        return f"D-{self.deal_number:05d}"
