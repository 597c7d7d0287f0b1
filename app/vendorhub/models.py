from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from app.vendorhub.modules.commitments.models import Commitment
    from app.vendorhub.modules.invoices.models import Invoice
    from app.vendorhub.modules.labels.models import LabelRequest
    from app.vendorhub.modules.tracking.models import Tracking


class Base(DeclarativeBase):
    pass


class Profile(Base):
    """
    Application-level user record, linked to an identity at the hosted auth provider.
    Rows are created by administrative actions only (never on login).
    """

    __tablename__ = "profiles"
    __table_args__ = (
        UniqueConstraint("auth_id", name="uq_profiles_auth_id"),
        UniqueConstraint("vendor_number", name="uq_profiles_vendor_number"),
        UniqueConstraint("discord_id", name="uq_profiles_discord_id"),
        Index("idx_profiles_email", "email"),
        Index("idx_profiles_role", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    auth_id: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="SELLER")  # ADMIN, SELLER
    vendor_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Business / payment
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bank_routing: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bank_account: Mapped[str | None] = mapped_column(String(64), nullable=True)
    accounting_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Discord
    discord_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discord_username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    discord_avatar: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_exclusive_member: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    exclusive_member_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    commitments: Mapped[list["Commitment"]] = relationship(
        "Commitment",
        back_populates="user",
        foreign_keys="Commitment.user_id",
        lazy="selectin",
    )
    invoices: Mapped[list["Invoice"]] = relationship("Invoice", back_populates="user", lazy="selectin")
    label_requests: Mapped[list["LabelRequest"]] = relationship(
        "LabelRequest",
        back_populates="user",
        foreign_keys="LabelRequest.user_id",
        lazy="selectin",
    )
    trackings: Mapped[list["Tracking"]] = relationship("Tracking", back_populates="user", lazy="selectin")

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def vendor_id(self) -> str:
        return f"U-{self.vendor_number:05d}"


class AuditEvent(Base):
    """Audit row written by `record_event`. Never updated or deleted; there is no read API."""

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_action", "action"),
        Index("idx_audit_events_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_profile_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "label.process"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "LabelRequest"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
import app.vendorhub.modules.deals.models  # noqa: E402,F401
import app.vendorhub.modules.commitments.models  # noqa: E402,F401
import app.vendorhub.modules.invoices.models  # noqa: E402,F401
import app.vendorhub.modules.labels.models  # noqa: E402,F401
import app.vendorhub.modules.warehouses.models  # noqa: E402,F401
import app.vendorhub.modules.tracking.models  # noqa: E402,F401
