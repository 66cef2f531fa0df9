# src/shipment_buckets/io/mappings.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union


class MappingDocumentError(ValueError):
    """Raised when an external mapping document cannot be used at all."""


def _unwrap(doc: Any) -> Any:
    """
    Accept either the bare nested mapping or an envelope such as
    {"mappings": {...}} / {"data": {...}} as returned by config endpoints.
    """
    if isinstance(doc, dict):
        for key in ("mappings", "data"):
            inner = doc.get(key)
            if isinstance(inner, dict):
                return inner
    return doc


def parse_mapping_document(doc: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Turn a JSON text or decoded object into `vendor -> code -> bucket`.

    Only the overall shape is validated here; individual bucket values are
    coerced (and bad ones skipped) by the resolver when the table is loaded.
    Vendors whose value is not an object are dropped.
    """
    if isinstance(doc, (str, bytes)):
        try:
            doc = json.loads(doc)
        except json.JSONDecodeError as e:
            raise MappingDocumentError(f"Mapping document is not valid JSON: {e}") from e

    doc = _unwrap(doc)
    if not isinstance(doc, dict):
        raise MappingDocumentError(
            f"Mapping document must be an object, got {type(doc).__name__}")

    return {
        str(vendor): dict(codes)
        for vendor, codes in doc.items()
        if isinstance(codes, dict)
    }


def read_mapping_file(path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """Read a JSON mapping file. Raises FileNotFoundError if missing."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    return parse_mapping_document(p.read_text(encoding="utf-8"))


__all__ = [
    "MappingDocumentError",
    "parse_mapping_document",
    "read_mapping_file",
]
