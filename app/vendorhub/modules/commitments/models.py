from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.vendorhub.models import Base

if TYPE_CHECKING:
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.deals.models import Deal
    from app.vendorhub.modules.invoices.models import Invoice
    from app.vendorhub.modules.labels.models import LabelRequest
    from app.vendorhub.modules.tracking.models import Tracking


class Commitment(Base):
    __tablename__ = "commitments"
    __table_args__ = (
        UniqueConstraint("commitment_number", name="uq_commitments_commitment_number"),
        Index("idx_commitments_user_status", "user_id", "status"),
        Index("idx_commitments_deal_id", "deal_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    commitment_number: Mapped[int] = mapped_column(Integer, nullable=False)

    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    warehouse: Mapped[str] = mapped_column(String(32), nullable=False, default="TBD")
    delivery_method: Mapped[str] = mapped_column(String(16), nullable=False, default="SHIP")  # SHIP, DROP_OFF
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="PENDING")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    fulfilled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    fulfilled_by_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    deal: Mapped["Deal"] = relationship("Deal", back_populates="commitments", lazy="selectin")
    user: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="commitments",
        foreign_keys=[user_id],
        lazy="selectin",
    )
    trackings: Mapped[list["Tracking"]] = relationship(
        "Tracking",
        back_populates="commitment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    label_request: Mapped["LabelRequest | None"] = relationship(
        "LabelRequest",
        back_populates="commitment",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    invoice: Mapped["Invoice | None"] = relationship(
        "Invoice",
        back_populates="commitment",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def display_id(self) -> str:
        return f"C-{self.commitment_number:05d}"
