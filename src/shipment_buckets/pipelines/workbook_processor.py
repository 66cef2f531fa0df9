from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd
import warnings

from shipment_buckets.io.schema import BUCKET_NAME_COLUMN, INPUT_COLUMNS
from shipment_buckets.pipelines.bucket_assigner import BucketAssigner
from shipment_buckets.pipelines.column_contract import ColumnContract
from shipment_buckets.rules.resolver import StatusBucketResolver
from openpyxl import load_workbook


class InputReadError(RuntimeError):
    """The tracking export exists but could not be parsed."""


class WorkbookProcessor:
    """Orchestrates reading, bucket assignment, column contract, family filter and writing."""

    def __init__(
        self,
        logger,
        *,
        resolver: Optional[StatusBucketResolver] = None,
        family: Optional[str] = None,
    ) -> None:
        self.logger = logger
        self.resolver = resolver or StatusBucketResolver(logger)
        self.family = family

    def process(
        self,
        input_path: Path,
        processed_path: Path,
        mappings: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> dict[str, Any]:
        input_path = Path(input_path)
        processed_path = Path(processed_path)

        if not input_path.exists():
            self.logger.error("Input file does not exist: %s", input_path)
            raise FileNotFoundError(input_path)

        if mappings is not None:
            self.resolver.load_external_vendor_mappings(mappings)

        df_in = self._read_input(input_path)
        df_all = self._classify(df_in)

        assigner = BucketAssigner(self.resolver, self.logger)
        df_out = assigner.filter_by_family(df_all, self.family)

        now_utc = dt.datetime.now(dt.timezone.utc).isoformat()
        summary = self._build_summary(df_all)
        marker = self._build_marker(input_path, processed_path, now_utc, df_in, df_out)

        processed_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_workbook(processed_path, df_out, summary, marker)
        self.logger.info("Wrote processed workbook → %s", processed_path)

        unmapped = self.resolver.unmapped_statuses()
        if unmapped:
            self.logger.warning(
                "%d vendor status code(s) had no mapping; top: %s",
                len(unmapped),
                ", ".join(f"{u['vendor']}:{u['status_code']}" for u in unmapped[:5]),
            )

        return {
            "output_path": str(processed_path),
            "timestamp_utc": now_utc,
            "family": self.family or "ALL",
            "input_rows": len(df_in),
            "output_rows": len(df_out),
            "bucket_counts": dict(zip(summary[BUCKET_NAME_COLUMN], summary["Rows"])),
            "unmapped_count": len(unmapped),
            "output_cols": list(df_out.columns),
        }

    def _read_input(self, input_path: Path) -> pd.DataFrame:
        try:
            if input_path.suffix.lower() == ".csv":
                df_in = pd.read_csv(input_path, dtype="string", keep_default_na=False)
            else:
                df_in = pd.read_excel(input_path, sheet_name=0, engine="openpyxl", dtype="string")
            self.logger.debug(
                "Opened input: %s (rows=%d, cols=%d)",
                input_path.name,
                len(df_in),
                len(df_in.columns),
            )
        except Exception as ex:
            self.logger.error("Could not read input (%s): %s", input_path.name, ex)
            raise InputReadError(f"Could not read {input_path.name}: {ex}") from ex

        if not any(c in df_in.columns for c in INPUT_COLUMNS):
            self.logger.warning(
                "%s has none of the columns %s; every row will fall back to ALL",
                input_path.name, ", ".join(INPUT_COLUMNS))
        return df_in

    def _classify(self, df_in: pd.DataFrame) -> pd.DataFrame:
        assigned = BucketAssigner(self.resolver, self.logger).assign(df_in)
        return ColumnContract().ensure(assigned, originals=list(df_in.columns))

    def _build_summary(self, df: pd.DataFrame) -> pd.DataFrame:
        if df.empty:
            return pd.DataFrame({BUCKET_NAME_COLUMN: pd.Series(dtype="string"),
                                 "Rows": pd.Series(dtype="int64")})
        counts = (
            df.groupby(["Bucket", BUCKET_NAME_COLUMN], sort=True)
            .size()
            .reset_index(name="Rows")
        )
        return counts[[BUCKET_NAME_COLUMN, "Rows"]].reset_index(drop=True)

    def _build_marker(self, input_path: Path, processed_path: Path, now_utc: str,
                      df_in: pd.DataFrame, df_out: pd.DataFrame) -> pd.DataFrame:
        stats = self.resolver.cache_stats()
        return pd.DataFrame(
            [
                {
                    "_sb_marker": "ok",
                    "input_name": input_path.name,
                    "input_dir": str(input_path.parent),
                    "output_name": processed_path.name,
                    "timestamp_utc": now_utc,
                    "family": self.family or "ALL",
                    "input_rows": len(df_in),
                    "output_rows": len(df_out),
                    "cached_lookups": stats["total"],
                    "external_vendors": len(self.resolver.external_mappings()),
                }
            ]
        )

    def _write_workbook(self, processed_path: Path, df_out: pd.DataFrame,
                        summary: pd.DataFrame, marker: pd.DataFrame) -> None:
        unmapped = pd.DataFrame(
            self.resolver.unmapped_statuses(),
            columns=["vendor", "status_code", "count"],
        )

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with pd.ExcelWriter(processed_path, engine="openpyxl", mode="w") as xw:
                df_out.to_excel(xw, sheet_name="Shipments", index=False, na_rep="")
                summary.to_excel(xw, sheet_name="Bucket Summary", index=False)
                unmapped.to_excel(xw, sheet_name="Unmapped", index=False)
                marker.to_excel(xw, sheet_name="Marker", index=False)

        self._postprocess_workbook(processed_path)

    def _postprocess_workbook(self, processed_path: Path) -> None:
        # Keep vendor status codes such as "01" or "1.0" as text in Excel
        try:
            wb = load_workbook(processed_path)
            ws = wb["Shipments"]
            header = [c.value for c in ws[1]] if ws.max_row >= 1 else []
            if "Status Code" in header:
                col_idx = header.index("Status Code") + 1
                for r in range(2, ws.max_row + 1):
                    cell = ws.cell(row=r, column=col_idx)
                    cell.value = "" if cell.value is None else str(cell.value)
                    cell.number_format = "@"
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                wb.save(processed_path)
        except Exception as ex:
            self.logger.warning("Post-processing of %s skipped: %s", processed_path.name, ex)
