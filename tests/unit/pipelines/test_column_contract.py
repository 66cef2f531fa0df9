# tests/unit/pipelines/test_column_contract.py
from __future__ import annotations

import pandas as pd

from shipment_buckets.io.schema import FLAG_COLS, OUTPUT_SUFFIX_ORDER
from shipment_buckets.pipelines.column_contract import ColumnContract


def test_column_order_preserves_original_then_contract_suffix():
    df = pd.DataFrame(columns=["B", "A"])
    out = ColumnContract().ensure(df)

    assert list(out.columns[:2]) == ["B", "A"]
    assert list(out.columns[2:]) == OUTPUT_SUFFIX_ORDER


def test_extras_go_after_suffix():
    df = pd.DataFrame({"A": [1], "Extra": ["e"], "Bucket": [4]})
    out = ColumnContract().ensure(df, originals=["A"])
    assert list(out.columns) == ["A"] + OUTPUT_SUFFIX_ORDER + ["Extra"]


def test_bucket_defaults_to_awaiting_and_is_int64():
    df = pd.DataFrame({"X": [1, 2, 3], "Bucket": ["4", None, "junk"]})
    out = ColumnContract().ensure(df)
    assert out["Bucket"].tolist() == [4, 100, 100]
    assert str(out["Bucket"].dtype) == "int64"


def test_missing_bucket_column_is_filled():
    out = ColumnContract().ensure(pd.DataFrame({"X": [1]}))
    assert out.loc[0, "Bucket"] == 100
    assert out.loc[0, "BucketName"] == ""


def test_flags_are_clipped_to_zero_one():
    df = pd.DataFrame({"IsRTO": [2, None, "x", 1], "IsNDR": [-1, 0, 1, 0]})
    out = ColumnContract().ensure(df)
    assert out["IsRTO"].tolist() == [1, 0, 0, 1]
    assert out["IsNDR"].tolist() == [0, 0, 1, 0]
    for col in FLAG_COLS:
        assert str(out[col].dtype) == "int64"


def test_string_columns_have_no_missing_values():
    df = pd.DataFrame({"BucketName": ["NDR", None], "BucketSource": [None, "keyword"]})
    out = ColumnContract().ensure(df)
    assert out["BucketName"].tolist() == ["NDR", ""]
    assert out["BucketSource"].tolist() == ["", "keyword"]
    assert str(out["BucketName"].dtype) == "string"
