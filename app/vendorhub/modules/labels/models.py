from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.vendorhub.models import Base

if TYPE_CHECKING:
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment
    from app.vendorhub.modules.deals.models import Deal


class LabelRequest(Base):
    """
    Shipping-label request for one commitment.
    Lifecycle: PENDING -> APPROVED | REJECTED | FULFILLED (admin only, never back to PENDING).
    """

    __tablename__ = "label_requests"
    __table_args__ = (
        UniqueConstraint("commitment_id", name="uq_label_requests_commitment_id"),
        Index("idx_label_requests_status", "status"),
        Index("idx_label_requests_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    commitment_id: Mapped[int] = mapped_column(ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="CASCADE"), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    label_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    label_files: Mapped[list | None] = mapped_column(JSON, nullable=True)  # storage paths "<bucket>/<key>"
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    processed_by_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    commitment: Mapped["Commitment"] = relationship("Commitment", back_populates="label_request", lazy="selectin")
    user: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="label_requests",
        foreign_keys=[user_id],
        lazy="selectin",
    )
    deal: Mapped["Deal"] = relationship("Deal", lazy="selectin")
