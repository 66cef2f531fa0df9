from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

PROCESSED_SUFFIX = "_processed.xlsx"

_UNSAFE = re.compile(r"[^A-Za-z0-9]+")


def _family_tag(family: Optional[str]) -> str:
    """READY-TO-SHIP -> _ready_to_ship; blank or ALL -> empty."""
    tag = _UNSAFE.sub("_", (family or "").strip()).strip("_").lower()
    return "" if tag in ("", "all") else f"_{tag}"


def derive_output_paths(input_file: Path, *, family: Optional[str] = None) -> Tuple[Path, Path]:
    """
    (processed workbook, log file) next to a tracking export (.xlsx or .csv).

    A family-filtered run gets its own workbook name so it does not clobber
    the unfiltered one; the log file is shared.
    Raises FileNotFoundError when the export is missing.
    """
    src = Path(input_file)
    if not src.exists():
        raise FileNotFoundError(src)
    processed = src.with_name(f"{src.stem}{_family_tag(family)}{PROCESSED_SUFFIX}")
    return processed, src.with_suffix(".log")
