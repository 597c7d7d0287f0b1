from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.vendorhub.models import Base

if TYPE_CHECKING:
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("commitment_id", name="uq_invoices_commitment_id"),
        Index("idx_invoices_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    commitment_id: Mapped[int] = mapped_column(ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")  # PENDING, PAID
    external_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)  # accounting system link

    check_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    check_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    commitment: Mapped["Commitment"] = relationship("Commitment", back_populates="invoice", lazy="selectin")
    user: Mapped["Profile"] = relationship("Profile", back_populates="invoices", lazy="selectin")
