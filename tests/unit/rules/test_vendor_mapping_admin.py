from __future__ import annotations

import pytest

from shipment_buckets.models import Bucket
from shipment_buckets.rules.resolver import SOURCE_VENDOR, StatusBucketResolver


@pytest.fixture
def resolver():
    r = StatusBucketResolver()
    r.load_external_vendor_mappings({"ACME": {"X1": "IN_TRANSIT", "X2": "NDR"}})
    return r


def _warm(resolver):
    resolver.bucket_from_vendor_code("X1", "ACME")
    resolver.detect_bucket_from_free_text("Lost in hub", "ZZ", "ACME")
    resolver.bucket_from_vendor_code("Delivered", "DELHIVERY")


# ---- invalidate_vendor_cache ------------------------------------------------

def test_invalidate_drops_only_that_vendor(resolver):
    _warm(resolver)
    assert resolver.cache_stats()["vendors"] == {"ACME": 2, "DELHIVERY": 1}

    assert resolver.invalidate_vendor_cache(" acme ") == 2
    assert resolver.cache_stats() == {"total": 1, "vendors": {"DELHIVERY": 1}}


def test_invalidate_unknown_or_blank_vendor_is_a_no_op(resolver):
    _warm(resolver)
    assert resolver.invalidate_vendor_cache("NOBODY") == 0
    assert resolver.invalidate_vendor_cache("") == 0
    assert resolver.invalidate_vendor_cache(None) == 0
    assert resolver.cache_stats()["total"] == 3


def test_invalidate_keeps_external_tables(resolver):
    _warm(resolver)
    resolver.invalidate_vendor_cache("ACME")
    assert resolver.bucket_from_vendor_code("X1", "ACME") == Bucket.IN_TRANSIT


# ---- update_vendor_mapping --------------------------------------------------

def test_update_adds_a_new_code(resolver):
    assert resolver.update_vendor_mapping("acme", "x3", "rto_in_transit") == Bucket.RTO_IN_TRANSIT
    assert resolver.bucket_from_vendor_code("X3", "ACME") == Bucket.RTO_IN_TRANSIT
    assert resolver.external_mappings()["ACME"]["X2"] == Bucket.NDR


def test_update_overwrites_and_drops_stale_keyword_cache(resolver):
    assert resolver.detect_bucket_from_free_text("In Transit", "ZZ", "ACME") == Bucket.IN_TRANSIT
    assert resolver.unmapped_statuses("ACME")[0]["status_code"] == "ZZ"

    resolver.update_vendor_mapping("ACME", "ZZ", 7)

    result = resolver.classify("In Transit", "ZZ", "ACME")
    assert result.bucket == Bucket.LOST_DAMAGED
    assert result.source == SOURCE_VENDOR
    assert resolver.unmapped_statuses("ACME") == []


def test_update_leaves_other_vendors_cached(resolver):
    _warm(resolver)
    resolver.update_vendor_mapping("ACME", "X1", Bucket.DELIVERED)
    assert resolver.cache_stats()["vendors"] == {"DELHIVERY": 1}
    assert resolver.bucket_from_vendor_code("X1", "ACME") == Bucket.DELIVERED


def test_update_creates_vendor(resolver):
    resolver.update_vendor_mapping("NEWCO", "S1", "0")
    assert resolver.bucket_from_vendor_code("S1", "NEWCO") == Bucket.NEW
    assert "NEWCO" in resolver.vendors()


@pytest.mark.parametrize(
    "vendor,code,bucket",
    [("", "X1", "NDR"), ("ACME", "  ", "NDR"), (None, "X1", 3),
     ("ACME", "X1", "NOT_A_BUCKET"), ("ACME", "X1", 42), ("ACME", "X1", None)],
)
def test_update_rejects_bad_input(resolver, vendor, code, bucket):
    with pytest.raises(ValueError):
        resolver.update_vendor_mapping(vendor, code, bucket)
    assert resolver.external_mappings() == {"ACME": {"X1": Bucket.IN_TRANSIT, "X2": Bucket.NDR}}


def test_update_of_builtin_code_is_shadowed(resolver):
    resolver.update_vendor_mapping("DELHIVERY", "Delivered", "NDR")
    assert resolver.external_mappings()["DELHIVERY"] == {"DELIVERED": Bucket.NDR}
    assert resolver.bucket_from_vendor_code("Delivered", "DELHIVERY") == Bucket.DELIVERED


# ---- remove_vendor_mapping --------------------------------------------------

def test_remove_external_code(resolver):
    resolver.bucket_from_vendor_code("X1", "ACME")
    assert resolver.remove_vendor_mapping("acme", "x1") is True
    assert resolver.bucket_from_vendor_code("X1", "ACME") is None
    assert resolver.external_mappings() == {"ACME": {"X2": Bucket.NDR}}


def test_removing_last_code_drops_the_vendor(resolver):
    resolver.remove_vendor_mapping("ACME", "X1")
    resolver.remove_vendor_mapping("ACME", "X2")
    assert resolver.external_mappings() == {}
    assert "ACME" not in resolver.vendors()


@pytest.mark.parametrize("vendor,code", [("ACME", "NOPE"), ("NOBODY", "X1"), ("", ""), ("DELHIVERY", "Delivered")])
def test_remove_misses_return_false(resolver, vendor, code):
    assert resolver.remove_vendor_mapping(vendor, code) is False
    assert resolver.bucket_from_vendor_code("Delivered", "DELHIVERY") == Bucket.DELIVERED


# ---- all_mappings -----------------------------------------------------------

def test_all_mappings_for_one_vendor_reports_source(resolver):
    rows = resolver.all_mappings("acme")
    assert rows == [
        {"vendor": "ACME", "status_code": "X1", "bucket": Bucket.IN_TRANSIT, "source": "external"},
        {"vendor": "ACME", "status_code": "X2", "bucket": Bucket.NDR, "source": "external"},
    ]


def test_all_mappings_lists_builtin_and_external_sorted(resolver):
    rows = resolver.all_mappings()
    vendors = [r["vendor"] for r in rows]
    assert vendors == sorted(vendors)
    assert {"DELHIVERY", "SHIPROCKET", "ACME"} <= set(vendors)
    delhivery = [r for r in rows if r["vendor"] == "DELHIVERY"]
    assert all(r["source"] == "builtin" for r in delhivery)
    assert [r["status_code"] for r in delhivery] == sorted(r["status_code"] for r in delhivery)


def test_all_mappings_bucket_filter(resolver):
    rows = resolver.all_mappings(bucket="RTO_DELIVERED")
    assert rows
    assert all(r["bucket"] == Bucket.RTO_DELIVERED for r in rows)
    assert {"vendor": "DELHIVERY", "status_code": "RTO DELIVERED",
            "bucket": Bucket.RTO_DELIVERED, "source": "builtin"} in rows


def test_all_mappings_shows_builtin_over_shadowed_external(resolver):
    resolver.update_vendor_mapping("DELHIVERY", "Delivered", "NDR")
    row = next(r for r in resolver.all_mappings("DELHIVERY") if r["status_code"] == "DELIVERED")
    assert row["bucket"] == Bucket.DELIVERED
    assert row["source"] == "builtin"


def test_all_mappings_unknown_bucket_matches_nothing(resolver):
    assert resolver.all_mappings(bucket="NOT_A_BUCKET") == []
