"""Simulated trade-licence registry used to prefill the company step."""
from __future__ import annotations

from typing import Dict

DEMO_LICENSE_MARKERS = ("DEMO", "12345")

DEMO_COMPANY = {
    "company_legal_name": "TechServe Solutions LLC",
    "legal_form": "Limited Liability Company",
    "registered_address": "Office 1205, Business Bay Tower, Dubai, UAE",
    "business_activity": "IT Consulting and Software Development Services",
}


def lookup(issuing_authority: str, trade_license_number: str) -> Dict[str, object]:
    license_number = (trade_license_number or "").strip().upper()
    if any(marker in license_number for marker in DEMO_LICENSE_MARKERS):
        return {"found": True, "prefill_source": "registry_lookup", **DEMO_COMPANY}
    return {"found": False, "prefill_source": "manual_entry"}
