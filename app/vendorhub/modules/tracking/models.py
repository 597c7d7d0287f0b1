from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.vendorhub.models import Base

if TYPE_CHECKING:
    from app.vendorhub.models import Profile
    from app.vendorhub.modules.commitments.models import Commitment


class Tracking(Base):
    __tablename__ = "trackings"
    __table_args__ = (
        Index("idx_trackings_user_id", "user_id"),
        Index("idx_trackings_commitment_id", "commitment_id"),
        Index("idx_trackings_tracking_number", "tracking_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    commitment_id: Mapped[int] = mapped_column(ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    tracking_number: Mapped[str] = mapped_column(String(64), nullable=False)
    carrier: Mapped[str] = mapped_column(String(16), nullable=False)  # UPS, FEDEX, USPS, DHL
    last_status: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    estimated_delivery: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    commitment: Mapped["Commitment"] = relationship("Commitment", back_populates="trackings", lazy="selectin")
    user: Mapped["Profile"] = relationship("Profile", back_populates="trackings", lazy="selectin")
