# tests/unit/pipelines/test_bucket_assigner.py
from __future__ import annotations

import logging

import pandas as pd
import pytest

from shipment_buckets.models import Bucket
from shipment_buckets.pipelines.bucket_assigner import BucketAssigner
from shipment_buckets.rules.resolver import StatusBucketResolver


@pytest.fixture
def assigner():
    return BucketAssigner(StatusBucketResolver(), logging.getLogger("sb.test.assigner"))


def _frame():
    return pd.DataFrame([
        {"Order": "A1", "Status": "RTO Delivered", "Status Code": "RTO Delivered", "Vendor": "DELHIVERY"},
        {"Order": "A2", "Status": "Package Lost In Transit", "Status Code": None, "Vendor": None},
        {"Order": "A3", "Status": None, "Status Code": "", "Vendor": "ACME"},
        {"Order": "A4", "Status": "Undelivered - address issue", "Status Code": "nan", "Vendor": ""},
    ])


def test_assign_adds_bucket_columns_without_mutating_input(assigner):
    df = _frame()
    out = assigner.assign(df)

    assert "Bucket" not in df.columns
    assert out["Bucket"].tolist() == [9, 81, 101, 3]
    assert out["BucketName"].tolist() == ["RTO_DELIVERED", "EXCEPTION", "ALL", "NDR"]
    assert out["BucketSource"].tolist() == ["vendor", "keyword", "default", "keyword"]
    assert str(out["Bucket"].dtype) == "int64"


def test_assign_sets_flags(assigner):
    out = assigner.assign(_frame())
    assert out["IsRTO"].tolist() == [1, 0, 0, 0]
    assert out["IsNDR"].tolist() == [0, 0, 0, 1]
    # "undelivered" contains "delivered"
    assert out["IsDelivered"].tolist() == [1, 0, 0, 1]
    assert out["IsFinal"].tolist() == [1, 0, 0, 0]
    for col in ("IsRTO", "IsNDR", "IsDelivered", "IsFinal"):
        assert str(out[col].dtype) == "int64"


def test_missing_input_columns_count_as_blank(assigner):
    out = assigner.assign(pd.DataFrame({"Status": ["Delivered", "weird"]}))
    assert out["Bucket"].tolist() == [int(Bucket.DELIVERED), int(Bucket.ALL)]


def test_empty_frame(assigner):
    out = assigner.assign(pd.DataFrame(columns=["Status"]))
    assert out.empty
    assert "BucketName" in out.columns


def test_filter_by_family_rto(assigner):
    out = assigner.filter_by_family(assigner.assign(_frame()), "rto")
    assert out["Order"].tolist() == ["A1"]


@pytest.mark.parametrize("family", [None, "", "ALL", "all"])
def test_filter_by_family_no_filter(assigner, family):
    df = assigner.assign(_frame())
    assert len(assigner.filter_by_family(df, family)) == len(df)


def test_unknown_family_warns_and_keeps_rows(assigner, caplog):
    df = assigner.assign(_frame())
    with caplog.at_level(logging.WARNING, logger="sb.test.assigner"):
        out = assigner.filter_by_family(df, "SHIPPED-ISH")
    assert len(out) == len(df)
    assert "Unknown status family" in caplog.text


def test_filter_without_bucket_column_is_noop(assigner):
    df = pd.DataFrame({"X": [1, 2]})
    assert len(assigner.filter_by_family(df, "RTO")) == 2
