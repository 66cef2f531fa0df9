# src/shipment_buckets/rules/predicates.py
from __future__ import annotations

from typing import Optional

from shipment_buckets.rules.taxonomy import (
    DELIVERED_RE,
    FINAL_STATUSES,
    NDR_RE,
    RTO_RE,
    combined_text,
    normalize_token,
)


def is_rto_status(status: Optional[str], status_code: Optional[str] = None) -> bool:
    """
    True for any return-to-origin text, including RTO_DELIVERED. Callers that
    need "still returning" must also check is_delivered_status.
    """
    text = combined_text(status, status_code)
    return bool(text) and RTO_RE.search(text) is not None


def is_ndr_status(status: Optional[str], status_code: Optional[str] = None) -> bool:
    text = combined_text(status, status_code)
    return bool(text) and NDR_RE.search(text) is not None


def is_delivered_status(status: Optional[str], status_code: Optional[str] = None) -> bool:
    # NB: "undelivered" also contains "delivered"
    text = combined_text(status, status_code)
    return bool(text) and DELIVERED_RE.search(text) is not None


def is_final_status(status: Optional[str]) -> bool:
    """Exact canonical match; a final shipment needs no further tracking polls."""
    return normalize_token(status) in FINAL_STATUSES


__all__ = [
    "is_rto_status",
    "is_ndr_status",
    "is_delivered_status",
    "is_final_status",
]
