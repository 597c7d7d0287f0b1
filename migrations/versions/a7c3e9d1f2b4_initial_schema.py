"""initial schema: profiles, deals, commitments, invoices, labels, tracking, warehouses

Revision ID: a7c3e9d1f2b4
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a7c3e9d1f2b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "profiles" not in existing_tables:
        op.create_table(
            "profiles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("auth_id", sa.String(64), nullable=False),
            sa.Column("email", sa.String(320), nullable=False),
            sa.Column("first_name", sa.String(128), nullable=False, server_default=""),
            sa.Column("last_name", sa.String(128), nullable=False, server_default=""),
            sa.Column("phone", sa.String(64), nullable=True),
            sa.Column("role", sa.String(16), nullable=False, server_default="SELLER"),
            sa.Column("vendor_number", sa.Integer(), nullable=False),
            sa.Column("company_name", sa.String(255), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("city", sa.String(128), nullable=True),
            sa.Column("state", sa.String(64), nullable=True),
            sa.Column("zip_code", sa.String(32), nullable=True),
            sa.Column("bank_name", sa.String(255), nullable=True),
            sa.Column("bank_routing", sa.String(64), nullable=True),
            sa.Column("bank_account", sa.String(64), nullable=True),
            sa.Column("accounting_notes", sa.Text(), nullable=True),
            sa.Column("discord_id", sa.String(64), nullable=True),
            sa.Column("discord_username", sa.String(255), nullable=True),
            sa.Column("discord_avatar", sa.String(512), nullable=True),
            sa.Column("is_exclusive_member", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("exclusive_member_checked_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("auth_id", name="uq_profiles_auth_id"),
            sa.UniqueConstraint("vendor_number", name="uq_profiles_vendor_number"),
            sa.UniqueConstraint("discord_id", name="uq_profiles_discord_id"),
        )
        op.create_index("idx_profiles_email", "profiles", ["email"])
        op.create_index("idx_profiles_role", "profiles", ["role"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_profile_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
            sa.Column("actor_email", sa.String(320), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.Column("client_ip", sa.String(64), nullable=True),
        )
        op.create_index("idx_audit_events_action", "audit_events", ["action"])
        op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])

    if "warehouses" not in existing_tables:
        op.create_table(
            "warehouses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("code", sa.String(16), nullable=False),
            sa.Column("name", sa.String(128), nullable=False),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("city", sa.String(128), nullable=True),
            sa.Column("state", sa.String(64), nullable=True),
            sa.Column("zip", sa.String(32), nullable=True),
            sa.Column("phone", sa.String(64), nullable=True),
            sa.Column("allow_drop_off", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("allow_shipping", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("code", name="uq_warehouses_code"),
        )

    if "deals" not in existing_tables:
        op.create_table(
            "deals",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("deal_number", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False, server_default=""),
            sa.Column("image_url", sa.String(1024), nullable=True),
            sa.Column("retail_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("payout", sa.Numeric(10, 2), nullable=False),
            sa.Column("price_type", sa.String(16), nullable=False),
            sa.Column("max_quantity", sa.Integer(), nullable=True),
            sa.Column("limit_per_vendor", sa.Integer(), nullable=True),
            sa.Column("free_label_min", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(16), nullable=False, server_default="DRAFT"),
            sa.Column("deadline", sa.DateTime(), nullable=True),
            sa.Column("is_exclusive", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("exclusive_price", sa.Numeric(10, 2), nullable=True),
            sa.Column("link_amazon", sa.String(1024), nullable=True),
            sa.Column("link_best_buy", sa.String(1024), nullable=True),
            sa.Column("link_walmart", sa.String(1024), nullable=True),
            sa.Column("link_target", sa.String(1024), nullable=True),
            sa.Column("link_home_depot", sa.String(1024), nullable=True),
            sa.Column("link_lowes", sa.String(1024), nullable=True),
            sa.Column("link_other", sa.String(1024), nullable=True),
            sa.Column("link_other_name", sa.String(128), nullable=True),
            sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("deal_number", name="uq_deals_deal_number"),
        )
        op.create_index("idx_deals_status", "deals", ["status"])
        op.create_index("idx_deals_created_at", "deals", ["created_at"])

    if "commitments" not in existing_tables:
        op.create_table(
            "commitments",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("commitment_number", sa.Integer(), nullable=False),
            sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("warehouse", sa.String(32), nullable=False, server_default="TBD"),
            sa.Column("delivery_method", sa.String(16), nullable=False, server_default="SHIP"),
            sa.Column("status", sa.String(32), nullable=False, server_default="PENDING"),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("shipped_at", sa.DateTime(), nullable=True),
            sa.Column("delivered_at", sa.DateTime(), nullable=True),
            sa.Column("fulfilled_at", sa.DateTime(), nullable=True),
            sa.Column("fulfilled_by_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("commitment_number", name="uq_commitments_commitment_number"),
        )
        op.create_index("idx_commitments_user_status", "commitments", ["user_id", "status"])
        op.create_index("idx_commitments_deal_id", "commitments", ["deal_id"])

    if "invoices" not in existing_tables:
        op.create_table(
            "invoices",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
            sa.Column("external_url", sa.String(1024), nullable=True),
            sa.Column("check_number", sa.String(64), nullable=True),
            sa.Column("check_image_url", sa.String(1024), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("paid_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("commitment_id", name="uq_invoices_commitment_id"),
        )
        op.create_index("idx_invoices_user_created", "invoices", ["user_id", "created_at"])

    if "label_requests" not in existing_tables:
        op.create_table(
            "label_requests",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
            sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
            sa.Column("label_url", sa.String(1024), nullable=True),
            sa.Column("label_files", sa.JSON(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("processed_at", sa.DateTime(), nullable=True),
            sa.Column("processed_by_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("commitment_id", name="uq_label_requests_commitment_id"),
        )
        op.create_index("idx_label_requests_status", "label_requests", ["status"])
        op.create_index("idx_label_requests_user_id", "label_requests", ["user_id"])

    if "trackings" not in existing_tables:
        op.create_table(
            "trackings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("tracking_number", sa.String(64), nullable=False),
            sa.Column("carrier", sa.String(16), nullable=False),
            sa.Column("last_status", sa.String(255), nullable=True),
            sa.Column("last_location", sa.String(255), nullable=True),
            sa.Column("estimated_delivery", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_trackings_user_id", "trackings", ["user_id"])
        op.create_index("idx_trackings_commitment_id", "trackings", ["commitment_id"])
        op.create_index("idx_trackings_tracking_number", "trackings", ["tracking_number"])


def downgrade() -> None:
    for table in (
        "trackings",
        "label_requests",
        "invoices",
        "commitments",
        "deals",
        "warehouses",
        "audit_events",
        "profiles",
    ):
        op.drop_table(table)
