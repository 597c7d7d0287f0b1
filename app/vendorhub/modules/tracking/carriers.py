"""
Carrier detection from tracking-number shape.

Patterns are tried in order; the first match wins. More distinctive
prefixes (UPS 1Z, FedEx 96/61, USPS 9x) come before bare digit-length rules.
"""
from __future__ import annotations

import re

UNKNOWN = "UNKNOWN"
MIN_LENGTH = 8

CARRIER_PATTERNS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("UPS", re.compile(r"^1Z[A-Z0-9]{16}$"), "UPS standard (1Z + 16)"),
    ("UPS", re.compile(r"^T\d{10}$"), "UPS Mail Innovations"),
    ("UPS", re.compile(r"^\d{9}$"), "UPS Ground (9 digits)"),
    ("UPS", re.compile(r"^K\d{10}$"), "UPS Worldwide Express"),
    ("FEDEX", re.compile(r"^\d{12}$"), "FedEx Express/Ground (12 digits)"),
    ("FEDEX", re.compile(r"^\d{15}$"), "FedEx Ground/Home (15 digits)"),
    ("FEDEX", re.compile(r"^96\d{20}$"), "FedEx Ground 96 (22 digits)"),
    ("FEDEX", re.compile(r"^61\d{18}$"), "FedEx Express Saver"),
    ("FEDEX", re.compile(r"^\d{20}$"), "FedEx SmartPost (20 digits)"),
    ("FEDEX", re.compile(r"^\d{22}$"), "FedEx (22 digits)"),
    ("FEDEX", re.compile(r"^DT\d{12}$"), "FedEx Door Tag"),
    ("USPS", re.compile(r"^(94|93|92|91)\d{18,22}$"), "USPS domestic"),
    ("USPS", re.compile(r"^[A-Z]{2}\d{9}US$"), "USPS international"),
    ("USPS", re.compile(r"^420\d{5}(91|92|93|94)\d{18,22}$"), "USPS with ZIP prefix"),
    ("USPS", re.compile(r"^\d{20,22}$"), "USPS standard (20-22 digits)"),
    ("USPS", re.compile(r"^82\d{8}$"), "USPS Priority Mail"),
    ("DHL", re.compile(r"^\d{10,11}$"), "DHL Express (10-11 digits)"),
    ("DHL", re.compile(r"^JD\d{18}$"), "DHL eCommerce"),
    ("DHL", re.compile(r"^GM\d{16,18}$"), "DHL Global Mail"),
    ("DHL", re.compile(r"^LX\d{9}[A-Z]{2}$"), "DHL Packet"),
)

_STRIP = re.compile(r"[\s-]")


def normalize_tracking_number(tracking_number: str) -> str:
    return _STRIP.sub("", tracking_number or "").upper()


def detect_carrier(tracking_number: str) -> str:
    """Carrier code for a tracking number, or UNKNOWN."""
    cleaned = normalize_tracking_number(tracking_number)
    if len(cleaned) < MIN_LENGTH:
        return UNKNOWN
    for carrier, pattern, _description in CARRIER_PATTERNS:
        if pattern.match(cleaned):
            return carrier
    return UNKNOWN


def format_tracking_number(tracking_number: str) -> str:
    """Group long numbers by four for display."""
    cleaned = _STRIP.sub("", tracking_number or "")
    if cleaned.upper().startswith("1Z") or len(cleaned) > 12:
        return " ".join(cleaned[i : i + 4] for i in range(0, len(cleaned), 4))
    return cleaned
