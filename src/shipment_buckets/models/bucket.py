from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Bucket(IntEnum):
    """
    Canonical shipment lifecycle buckets.

    The integer value is the storage/wire code; the member name is the
    canonical status name used by APIs and dashboards. Codes are stable and
    must never be renumbered.
    """

    NEW = 0
    READY_TO_SHIP = 1
    IN_TRANSIT = 2
    NDR = 3
    DELIVERED = 4
    RTO_INITIATED = 5
    CANCELLED_ORDER = 6
    LOST_DAMAGED = 7
    DISPOSED = 8
    RTO_DELIVERED = 9

    COURIER_ASSIGNED = 11
    PICKUP_SCHEDULED = 12
    PICKED_UP = 13
    OUT_FOR_DELIVERY = 41
    RTO_IN_TRANSIT = 51
    CANCELLED_SHIPMENT = 61
    EXCEPTION = 81

    AWAITING = 100
    ALL = 101


@dataclass(frozen=True)
class FamilyFilter:
    """Expansion of a dashboard status family into a bucket filter.

    `known` is False for unrecognized family names. An empty `buckets` tuple
    on a known family (only ALL) means "no filter", not "match nothing".
    """
    family: str
    known: bool
    buckets: tuple[Bucket, ...] = ()

    @property
    def unfiltered(self) -> bool:
        return self.known and not self.buckets
