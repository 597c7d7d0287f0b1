"""
Central constants for the VendorHub application.
"""
from __future__ import annotations

ROLE_ADMIN = "ADMIN"
ROLE_SELLER = "SELLER"
ROLES = (ROLE_ADMIN, ROLE_SELLER)

DEAL_STATUSES = ("DRAFT", "ACTIVE", "PAUSED", "CLOSED", "EXPIRED")

PRICE_BELOW_COST = "BELOW_COST"
PRICE_RETAIL = "RETAIL"
PRICE_ABOVE_RETAIL = "ABOVE_RETAIL"

COMMITMENT_STATUSES = (
    "PENDING",
    "DROP_OFF_PENDING",
    "IN_TRANSIT",
    "DELIVERED",
    "RECEIVED",
    "FULFILLED",
    "CANCELLED",
)
# statuses an owner may still edit or cancel
COMMITMENT_OPEN_STATUSES = ("PENDING", "DROP_OFF_PENDING")
DELIVERY_METHODS = ("SHIP", "DROP_OFF")
DEFAULT_VENDOR_LIMIT = 999

INVOICE_STATUSES = ("PENDING", "PAID")

LABEL_PENDING = "PENDING"
LABEL_STATUSES = ("PENDING", "APPROVED", "REJECTED", "FULFILLED")
# targets for PATCH /api/labels/<id>; PENDING is never a target
LABEL_PROCESS_STATUSES = ("APPROVED", "REJECTED", "FULFILLED")
# targets for the admin batch processor
LABEL_ADMIN_STATUSES = ("APPROVED", "REJECTED")

CARRIERS = ("UPS", "FEDEX", "USPS", "DHL")

# File relay content types by extension
FILE_CONTENT_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

DISCORD_AUTHORIZE_URL = "https://discord.com/api/oauth2/authorize"
DISCORD_CALLBACK_PATH = "/api/auth/discord/callback"
EXCLUSIVE_RECHECK_SECONDS = 60 * 60

DEFAULT_WAREHOUSES = (
    {"code": "MA", "name": "Massachusetts", "allow_drop_off": True, "allow_shipping": False},
    {"code": "NJ", "name": "New Jersey", "allow_drop_off": True, "allow_shipping": False},
    {"code": "CT", "name": "Connecticut", "allow_drop_off": True, "allow_shipping": False},
    {"code": "NY", "name": "New York", "allow_drop_off": True, "allow_shipping": False},
    {"code": "DE", "name": "Delaware", "allow_drop_off": False, "allow_shipping": True},
)
