# src/shipment_buckets/pipelines/column_contract.py
from __future__ import annotations

import pandas as pd

from shipment_buckets.io.schema import (
    BUCKET_COLUMN,
    FLAG_COLS,
    OUTPUT_STRING_COLUMNS,
    OUTPUT_SUFFIX_ORDER,
)
from shipment_buckets.models import Bucket


def _as_int(series: pd.Series, default: int = 0) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").fillna(default).astype("int64")


class ColumnContract:
    """
    Ensures the processed DataFrame contains:
      - Bucket (int64, AWAITING when missing/unparseable)
      - BucketName, BucketSource (string)
      - IsRTO, IsNDR, IsDelivered, IsFinal (int 0/1)
    and orders columns as:
      [<originals in original order>] + OUTPUT_SUFFIX_ORDER + [<any other columns>]
    """

    def ensure(self, df: pd.DataFrame, *, originals: list[str] | None = None) -> pd.DataFrame:
        out = df.copy()

        if BUCKET_COLUMN not in out.columns:
            out[BUCKET_COLUMN] = int(Bucket.AWAITING)
        out[BUCKET_COLUMN] = _as_int(out[BUCKET_COLUMN], default=int(Bucket.AWAITING))

        for col in OUTPUT_STRING_COLUMNS:
            if col not in out.columns:
                out[col] = ""
            out[col] = out[col].astype("string").fillna("")

        for col in FLAG_COLS:
            if col not in out.columns:
                out[col] = 0
            out[col] = _as_int(out[col]).clip(0, 1)

        base = [c for c in (originals if originals is not None else df.columns)
                if c in out.columns and c not in OUTPUT_SUFFIX_ORDER]
        extras = [c for c in out.columns if c not in base and c not in OUTPUT_SUFFIX_ORDER]
        return out.reindex(columns=base + OUTPUT_SUFFIX_ORDER + extras)
