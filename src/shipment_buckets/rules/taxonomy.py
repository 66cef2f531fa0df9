# src/shipment_buckets/rules/taxonomy.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

from shipment_buckets.models import Bucket

# -------- Canonical name <-> code (bijection) --------
BUCKET_TO_NAME: Mapping[int, str] = MappingProxyType(
    {int(b): b.name for b in Bucket}
)
NAME_TO_BUCKET: Mapping[str, Bucket] = MappingProxyType(
    {b.name: b for b in Bucket}
)

# Legacy names still written by older integrations. Forward direction only.
STATUS_ALIASES: Mapping[str, Bucket] = MappingProxyType({
    "CANCELLED": Bucket.CANCELLED_ORDER,
    "RTO": Bucket.RTO_INITIATED,
})

DEFAULT_CANONICAL_BUCKET = Bucket.NEW
DEFAULT_BUCKET_NAME = Bucket.AWAITING.name
DEFAULT_FREE_TEXT_BUCKET = Bucket.ALL

FINAL_STATUSES: frozenset[str] = frozenset({
    Bucket.DELIVERED.name,
    Bucket.RTO_DELIVERED.name,
})

# -------- Dashboard status families (one-to-many) --------
_READY_TO_SHIP_FAMILY = (
    Bucket.READY_TO_SHIP,
    Bucket.COURIER_ASSIGNED,
    Bucket.PICKUP_SCHEDULED,
    Bucket.PICKED_UP,
)
_TRANSIT_FAMILY = (Bucket.IN_TRANSIT, Bucket.OUT_FOR_DELIVERY)

STATUS_FAMILIES: Mapping[str, tuple[Bucket, ...]] = MappingProxyType({
    # every single-bucket name expands to itself
    **{b.name: (b,) for b in Bucket if b is not Bucket.ALL},
    "READY-TO-SHIP": _READY_TO_SHIP_FAMILY,
    "READY_TO_SHIP": _READY_TO_SHIP_FAMILY,
    "TRANSIT": _TRANSIT_FAMILY,
    "IN_TRANSIT": _TRANSIT_FAMILY,
    "RTO": (Bucket.RTO_INITIATED, Bucket.RTO_IN_TRANSIT, Bucket.RTO_DELIVERED),
    "CANCELLED": (Bucket.CANCELLED_ORDER, Bucket.CANCELLED_SHIPMENT),
    # no filter
    "ALL": (),
})

# -------- Keyword fallback (ordered, first match wins) --------

def _word(token: str) -> str:
    # "_" separates words in vendor tokens (NDR_PENDING), so \b is not enough
    return rf"(?<![a-z0-9]){token}(?![a-z0-9])"


# More specific patterns must precede the general ones they overlap with:
#   RTO_DELIVERED / RTO_IN_TRANSIT before RTO_INITIATED,
#   CANCELLED_ORDER before CANCELLED_SHIPMENT,
#   NDR ("undelivered") before DELIVERED,
#   EXCEPTION ("lost in transit") before IN_TRANSIT,
#   OUT_FOR_DELIVERY / pickup phrases before DELIVERED / IN_TRANSIT.
_KEYWORD_SOURCE: tuple[tuple[Bucket, tuple[str, ...]], ...] = (
    (Bucket.RTO_DELIVERED, (r"rto[_ ]delivered", r"return[_ ]delivered")),
    (Bucket.RTO_IN_TRANSIT, (r"rto[_ ]in[_ ]?transit", r"return[_ ]in[_ ]?transit")),
    (Bucket.RTO_INITIATED, (_word("rto"), r"rto[_ ]initiated",
     r"return[_ ]to[_ ]origin", r"returned", r"^rt$")),
    (Bucket.CANCELLED_ORDER, (r"cancel(?:led)?[_ ]order",)),
    (Bucket.CANCELLED_SHIPMENT, (r"cancel",)),
    (Bucket.DISPOSED, (r"dispos",)),
    (Bucket.NDR, (r"undelivered", _word("ndr"), r"not[_ ]delivered",
     r"delivery[_ ]failed")),
    (Bucket.EXCEPTION, (r"exception", r"lost", r"damaged", r"failed")),
    (Bucket.OUT_FOR_DELIVERY, (r"out[_ ]for[_ ]delivery",)),
    (Bucket.DELIVERED, (r"delivered",)),
    (Bucket.PICKUP_SCHEDULED, (r"pickup[_ ]scheduled", r"scheduled[_ ]pickup",
     r"out[_ ]for[_ ]pickup")),
    (Bucket.PICKED_UP, (r"picked[_ ]?up", r"pickup[_ ]complete")),
    (Bucket.IN_TRANSIT, (r"transit", r"shipped", r"dispatched")),
    (Bucket.COURIER_ASSIGNED, (r"assigned", r"pending", r"ready")),
    (Bucket.NEW, (_word("new"), r"created", r"placed", r"manifested")),
)

KEYWORD_PATTERNS: tuple[tuple[Bucket, tuple[re.Pattern[str], ...]], ...] = tuple(
    (bucket, tuple(re.compile(p, re.IGNORECASE) for p in patterns))
    for bucket, patterns in _KEYWORD_SOURCE
)

RTO_DELIVERED_RE = re.compile(r"rto[_ ]delivered|return[_ ]delivered", re.IGNORECASE)

# -------- Status-family predicates --------
RTO_RE = re.compile(r"rto|return[_ ]to[_ ]origin|^rt$")
NDR_RE = re.compile(r"undelivered|ndr|not[_ ]delivered|delivery[_ ]failed")
DELIVERED_RE = re.compile(r"delivered")


def normalize_token(value: Optional[object]) -> str:
    """Upper-case + trim; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip().upper()


def combined_text(status: Optional[str], status_code: Optional[str] = None) -> str:
    """Lower-cased blob of status and code, blank parts dropped."""
    parts = [str(p).strip() for p in (status, status_code) if p]
    return " ".join(p for p in parts if p).lower()


def coerce_bucket(value: object) -> Optional[Bucket]:
    """
    Accept a Bucket, an integer code, a numeric string or a canonical name
    (aliases included). Returns None when the value names no bucket.
    """
    if isinstance(value, Bucket):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Bucket(value) if value in BUCKET_TO_NAME else None
    if isinstance(value, str):
        token = normalize_token(value)
        if token.lstrip("-").isdigit():
            return coerce_bucket(int(token))
        if token in NAME_TO_BUCKET:
            return NAME_TO_BUCKET[token]
        return STATUS_ALIASES.get(token)
    return None


def match_keyword(text: str) -> Optional[Bucket]:
    """Return the bucket of the first matching keyword pattern, if any."""
    for bucket, patterns in KEYWORD_PATTERNS:
        if any(p.search(text) for p in patterns):
            return bucket
    return None


__all__ = [
    "BUCKET_TO_NAME",
    "NAME_TO_BUCKET",
    "STATUS_ALIASES",
    "STATUS_FAMILIES",
    "FINAL_STATUSES",
    "KEYWORD_PATTERNS",
    "RTO_DELIVERED_RE",
    "RTO_RE",
    "NDR_RE",
    "DELIVERED_RE",
    "DEFAULT_CANONICAL_BUCKET",
    "DEFAULT_BUCKET_NAME",
    "DEFAULT_FREE_TEXT_BUCKET",
    "normalize_token",
    "coerce_bucket",
    "combined_text",
    "match_keyword",
]
