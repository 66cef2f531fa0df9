from __future__ import annotations

from typing import Any, Optional

import numpy as np
import pandas as pd

from shipment_buckets.io.schema import (
    BUCKET_COLUMN,
    BUCKET_NAME_COLUMN,
    BUCKET_SOURCE_COLUMN,
    STATUS_CODE_COLUMN,
    STATUS_COLUMN,
    VENDOR_COLUMN,
)
from shipment_buckets.rules.resolver import StatusBucketResolver


def _is_blank(val: Any) -> bool:
    """True if value is None/NaN/empty/“nan”/“none” (case-insensitive)."""
    if val is None or val is pd.NA:
        return True
    if isinstance(val, float) and np.isnan(val):
        return True
    s = str(val).strip()
    return s == "" or s.lower() in {"nan", "none", "<na>"}


def _text(val: Any) -> Optional[str]:
    return None if _is_blank(val) else str(val).strip()


class BucketAssigner:
    """Classifies each tracking row of a DataFrame into a canonical bucket."""

    def __init__(self, resolver: StatusBucketResolver, logger=None) -> None:
        self.resolver = resolver
        self.logger = logger

    def _column(self, df: pd.DataFrame, name: str) -> list[Optional[str]]:
        # plain objects; string-dtype columns would turn None back into pd.NA
        if name in df.columns:
            return [_text(v) for v in df[name].tolist()]
        return [None] * len(df)

    def assign(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Adds Bucket, BucketName, BucketSource and the 0/1 flags
        IsRTO, IsNDR, IsDelivered, IsFinal.

        Reads "Status", "Status Code" and "Vendor"; absent columns count as
        blank. Does not mutate input; returns a new DataFrame.
        """
        out = df.copy()
        status = self._column(out, STATUS_COLUMN)
        code = self._column(out, STATUS_CODE_COLUMN)
        vendor = self._column(out, VENDOR_COLUMN)

        results = [
            self.resolver.classify(s, c, v)
            for s, c, v in zip(status, code, vendor)
        ]

        out[BUCKET_COLUMN] = pd.Series(
            [int(r.bucket) for r in results], index=out.index, dtype="int64")
        out[BUCKET_NAME_COLUMN] = pd.Series(
            [r.name for r in results], index=out.index, dtype="string")
        out[BUCKET_SOURCE_COLUMN] = pd.Series(
            [r.source for r in results], index=out.index, dtype="string")

        r = self.resolver
        out["IsRTO"] = [int(r.is_rto_status(s, c)) for s, c in zip(status, code)]
        out["IsNDR"] = [int(r.is_ndr_status(s, c)) for s, c in zip(status, code)]
        out["IsDelivered"] = [int(r.is_delivered_status(s, c))
                              for s, c in zip(status, code)]
        out["IsFinal"] = [int(r.is_final_status(n)) for n in out[BUCKET_NAME_COLUMN]]
        for col in ("IsRTO", "IsNDR", "IsDelivered", "IsFinal"):
            out[col] = out[col].astype("int64")

        if self.logger and len(out):
            by_source = out[BUCKET_SOURCE_COLUMN].value_counts().to_dict()
            self.logger.info("Assigned buckets to %d row(s) %s", len(out), by_source)
        return out

    def filter_by_family(self, df: pd.DataFrame, family: Optional[str]) -> pd.DataFrame:
        """
        Keep rows whose Bucket belongs to `family`. "ALL", blank and unknown
        families leave the frame unfiltered (unknown ones are logged).
        """
        if _is_blank(family):
            return df.copy()

        fam = self.resolver.lookup_status_family(family)
        if not fam.known:
            if self.logger:
                self.logger.warning("Unknown status family %r; not filtering", family)
            return df.copy()
        if fam.unfiltered or BUCKET_COLUMN not in df.columns:
            return df.copy()

        codes = [int(b) for b in fam.buckets]
        out = df.loc[df[BUCKET_COLUMN].isin(codes)].copy()
        if self.logger:
            self.logger.info("filter_by_family(%s): %d -> %d (Δ %d)",
                             fam.family, len(df), len(out), len(out) - len(df))
        return out
