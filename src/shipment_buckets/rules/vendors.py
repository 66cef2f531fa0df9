# src/shipment_buckets/rules/vendors.py
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from shipment_buckets.models import Bucket
from shipment_buckets.rules.taxonomy import normalize_token

# Raw vendor vocabularies, spelled the way each vendor sends them.
_SHIPROCKET = {
    "ALL": Bucket.ALL,
    "NEW": Bucket.NEW,
    "PICKUP_GENERATED": Bucket.COURIER_ASSIGNED,
    "PICKUP": Bucket.PICKUP_SCHEDULED,
    "PICKED": Bucket.PICKED_UP,
    "SHIPPED": Bucket.IN_TRANSIT,
    "IN_TRANSIT": Bucket.IN_TRANSIT,
    "OUT_FOR_DELIVERY": Bucket.OUT_FOR_DELIVERY,
    "DELIVERED": Bucket.DELIVERED,
    "UNDELIVERED": Bucket.NDR,
    "NDR": Bucket.NDR,
    "RTO_INITIATED": Bucket.RTO_INITIATED,
    "RTO": Bucket.RTO_INITIATED,
    "RTO_IN_TRANSIT": Bucket.RTO_IN_TRANSIT,
    "RTO_DELIVERED": Bucket.RTO_DELIVERED,
    "PICKUP_EXCEPTION": Bucket.EXCEPTION,
    "LOST": Bucket.EXCEPTION,
    "DAMAGED": Bucket.EXCEPTION,
    "DISPOSED_OFF": Bucket.DISPOSED,
    "CANCELLED": Bucket.CANCELLED_SHIPMENT,
}

_DELHIVERY = {
    "ALL": Bucket.ALL,
    "Manifested": Bucket.NEW,
    "Assigned": Bucket.COURIER_ASSIGNED,
    "Pending": Bucket.COURIER_ASSIGNED,
    "Pickup": Bucket.PICKUP_SCHEDULED,
    "Picked": Bucket.PICKED_UP,
    "In Transit": Bucket.IN_TRANSIT,
    "Dispatched": Bucket.IN_TRANSIT,
    "Out for Delivery": Bucket.OUT_FOR_DELIVERY,
    "Delivered": Bucket.DELIVERED,
    "Undelivered": Bucket.NDR,
    "NDR": Bucket.NDR,
    "RTO": Bucket.RTO_INITIATED,
    "RT": Bucket.RTO_INITIATED,
    "RTO In Transit": Bucket.RTO_IN_TRANSIT,
    "RTO Delivered": Bucket.RTO_DELIVERED,
    "DTO": Bucket.RTO_DELIVERED,
    "Lost": Bucket.EXCEPTION,
    "Damaged": Bucket.EXCEPTION,
    "Exception": Bucket.EXCEPTION,
    "Cancelled": Bucket.CANCELLED_SHIPMENT,
}

_SMARTSHIP = {
    "ALL": Bucket.ALL,
    "NEW": Bucket.NEW,
    "ASSIGNED": Bucket.COURIER_ASSIGNED,
    "PENDING": Bucket.COURIER_ASSIGNED,
    "PICKUP": Bucket.PICKUP_SCHEDULED,
    "PICKED": Bucket.PICKED_UP,
    "PICKUP_COMPLETE": Bucket.PICKED_UP,
    "IN_TRANSIT": Bucket.IN_TRANSIT,
    "INTRANSIT": Bucket.IN_TRANSIT,
    "OUT_FOR_DELIVERY": Bucket.OUT_FOR_DELIVERY,
    "DELIVERED": Bucket.DELIVERED,
    "UNDELIVERED": Bucket.NDR,
    "NDR": Bucket.NDR,
    "RTO": Bucket.RTO_INITIATED,
    "RTO_IN_TRANSIT": Bucket.RTO_IN_TRANSIT,
    "RTO_DELIVERED": Bucket.RTO_DELIVERED,
    "EXCEPTION": Bucket.EXCEPTION,
    "LOST": Bucket.EXCEPTION,
    "DAMAGED": Bucket.EXCEPTION,
    "CANCELLED": Bucket.CANCELLED_SHIPMENT,
}

_SHIPROCKET_B2B = {
    "ALL": Bucket.ALL,
    "NEW": Bucket.NEW,
    "PENDING": Bucket.COURIER_ASSIGNED,
    "PICKUP_SCHEDULED": Bucket.PICKUP_SCHEDULED,
    "IN_TRANSIT": Bucket.IN_TRANSIT,
    "OUT_FOR_DELIVERY": Bucket.OUT_FOR_DELIVERY,
    "DELIVERED": Bucket.DELIVERED,
    "UNDELIVERED": Bucket.NDR,
    "RTO": Bucket.RTO_INITIATED,
    "RTO_DELIVERED": Bucket.RTO_DELIVERED,
    "CANCELLED": Bucket.CANCELLED_SHIPMENT,
}


def normalize_vendor_table(table: Mapping[str, Bucket]) -> dict[str, Bucket]:
    """Upper-case/trim keys so lookups are case-insensitive."""
    return {normalize_token(k): v for k, v in table.items()}


BUILTIN_VENDOR_MAPPINGS: Mapping[str, Mapping[str, Bucket]] = MappingProxyType({
    vendor: MappingProxyType(normalize_vendor_table(table))
    for vendor, table in (
        ("SHIPROCKET", _SHIPROCKET),
        ("DELHIVERY", _DELHIVERY),
        ("SMARTSHIP", _SMARTSHIP),
        ("SHIPROCKET_B2B", _SHIPROCKET_B2B),
    )
})

__all__ = ["BUILTIN_VENDOR_MAPPINGS", "normalize_vendor_table"]
