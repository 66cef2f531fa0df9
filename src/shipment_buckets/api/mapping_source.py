from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol
import logging

from shipment_buckets.io.mappings import (
    MappingDocumentError,
    parse_mapping_document,
    read_mapping_file,
)
from .transport import RequestsTransport


class MappingSource(Protocol):
    def fetch(self) -> Dict[str, Dict[str, Any]]:
        ...


@dataclass
class FileMappingSource:
    """External vendor mappings kept in a JSON file (e.g. a config volume)."""

    path: Path

    def fetch(self) -> Dict[str, Dict[str, Any]]:
        return read_mapping_file(self.path)


class HttpMappingSource:
    """External vendor mappings served by a config endpoint.

    GETs `url` (optionally with a bearer token) and parses the JSON body with
    parse_mapping_document. Transport errors and non-2xx responses propagate
    to the caller, which decides whether to keep the previous table.
    """

    def __init__(
        self,
        url: str,
        *,
        token: Optional[str] = None,
        transport: Optional[Any] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url
        self.token = token
        self.transport = transport or RequestsTransport()
        self.logger: logging.Logger = logger or logging.getLogger(
            "shipment_buckets.api.mapping_source"
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def fetch(self) -> Dict[str, Dict[str, Any]]:
        self.logger.debug("Fetching bucket mappings from %s", self.url)
        resp = self.transport.get(self.url, headers=self._headers())
        resp.raise_for_status()
        try:
            body = resp.json()
        except ValueError as e:
            raise MappingDocumentError(
                f"Mapping endpoint returned a non-JSON body ({self.url})") from e
        mappings = parse_mapping_document(body)
        self.logger.info("Fetched bucket mappings for %d vendor(s) from %s",
                         len(mappings), self.url)
        return mappings


def source_from_env(env_cfg, *, transport: Optional[Any] = None) -> Optional[MappingSource]:
    """Pick the configured source: file wins over URL; None if neither is set."""
    path = getattr(env_cfg, "BUCKET_MAPPINGS_FILE", "") or ""
    url = getattr(env_cfg, "BUCKET_MAPPINGS_URL", "") or ""
    if path:
        return FileMappingSource(Path(path))
    if url:
        token = getattr(env_cfg, "BUCKET_MAPPINGS_TOKEN", "") or None
        return HttpMappingSource(url, token=token, transport=transport)
    return None


__all__ = [
    "MappingSource",
    "FileMappingSource",
    "HttpMappingSource",
    "source_from_env",
]
