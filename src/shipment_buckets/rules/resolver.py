# src/shipment_buckets/rules/resolver.py
from __future__ import annotations

import numbers
import threading
from collections import Counter
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

from shipment_buckets.models import Bucket, FamilyFilter
from shipment_buckets.rules import predicates
from shipment_buckets.rules.taxonomy import (
    BUCKET_TO_NAME,
    DEFAULT_BUCKET_NAME,
    DEFAULT_CANONICAL_BUCKET,
    DEFAULT_FREE_TEXT_BUCKET,
    NAME_TO_BUCKET,
    RTO_DELIVERED_RE,
    STATUS_ALIASES,
    STATUS_FAMILIES,
    coerce_bucket,
    combined_text,
    match_keyword,
    normalize_token,
)
from shipment_buckets.rules.vendors import BUILTIN_VENDOR_MAPPINGS

# How a bucket was obtained
SOURCE_VENDOR = "vendor"
SOURCE_KEYWORD = "keyword"
SOURCE_DEFAULT = "default"

VendorTables = Mapping[str, Mapping[str, Bucket]]


@dataclass(frozen=True)
class CacheEntry:
    bucket: Bucket
    source: str


@dataclass(frozen=True)
class Classification:
    bucket: Bucket
    source: str

    @property
    def name(self) -> str:
        return self.bucket.name


class LookupCache:
    """(vendor, token) -> CacheEntry. No locking; owned by one generation."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CacheEntry] = {}

    def get(self, vendor: str, token: str) -> Optional[CacheEntry]:
        return self._entries.get((vendor, token))

    def put(self, vendor: str, token: str, bucket: Bucket, source: str) -> None:
        self._entries[(vendor, token)] = CacheEntry(bucket, source)

    def clear(self) -> None:
        self._entries.clear()

    def without_vendor(self, vendor: str) -> "LookupCache":
        """Copy holding every entry except `vendor`'s."""
        fresh = LookupCache()
        fresh._entries = {k: e for k, e in list(self._entries.items()) if k[0] != vendor}
        return fresh

    def per_vendor(self) -> dict[str, int]:
        counts: Counter[str] = Counter(v for v, _ in list(self._entries))
        return dict(sorted(counts.items()))

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class _Generation:
    """External table + the cache built on top of it, swapped together."""
    external: VendorTables = field(default_factory=lambda: MappingProxyType({}))
    cache: LookupCache = field(default_factory=LookupCache)


class StatusBucketResolver:
    """
    Maps canonical names, vendor status codes and free-text status strings
    onto a canonical Bucket.

    Resolution strategies, in priority order:
      1) exact vendor-code lookup (built-in table, then externally loaded table)
      2) canonical status-name lookup
      3) ordered keyword/regex fallback

    Unrecognized input never raises; each entry point degrades to its own
    default (NEW, AWAITING, ALL, or None for vendor-code lookup).

    The externally loaded table and the lookup cache live in one generation
    object. Readers take a single reference to it; writers build a new one and
    swap it under a lock, so a lookup never mixes old mappings with a new cache.
    """

    def __init__(
        self,
        logger=None,
        *,
        builtin_mappings: Optional[Mapping[str, Mapping[str, Any]]] = None,
        external_mappings: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> None:
        self.logger = logger
        if builtin_mappings is None:
            self._builtin: VendorTables = BUILTIN_VENDOR_MAPPINGS
        else:
            self._builtin = MappingProxyType(self._freeze_tables(builtin_mappings))
        self._lock = threading.Lock()
        self._generation = _Generation()
        self._unmapped: Counter[tuple[str, str]] = Counter()

        if external_mappings:
            self.load_external_vendor_mappings(external_mappings)

    # ---- logging -------------------------------------------------------------

    def _log(self, level: str, msg: str, *args) -> None:
        fn = getattr(self.logger, level, None)
        if callable(fn):
            fn(msg, *args)

    # ---- canonical name <-> code --------------------------------------------

    def bucket_from_canonical_status(self, status: Optional[str]) -> Bucket:
        """Exact, case-insensitive canonical lookup. Unknown/empty -> NEW."""
        token = normalize_token(status)
        if token in NAME_TO_BUCKET:
            return NAME_TO_BUCKET[token]
        if token in STATUS_ALIASES:
            return STATUS_ALIASES[token]
        return DEFAULT_CANONICAL_BUCKET

    def bucket_name_from_code(self, bucket: Union[Bucket, int, str, None]) -> str:
        """Reverse lookup. Total: None or an undefined code -> "AWAITING"."""
        if bucket is None or isinstance(bucket, bool):
            return DEFAULT_BUCKET_NAME
        try:
            if not isinstance(bucket, (numbers.Integral, str)):
                # 4.0 from a float column is fine; 4.7, NaN and inf are not codes
                if not float(bucket).is_integer():
                    return DEFAULT_BUCKET_NAME
            code = int(bucket)
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_BUCKET_NAME
        return BUCKET_TO_NAME.get(code, DEFAULT_BUCKET_NAME)

    # ---- dashboard families --------------------------------------------------

    def lookup_status_family(self, family: Optional[str]) -> FamilyFilter:
        token = normalize_token(family)
        if token not in STATUS_FAMILIES:
            return FamilyFilter(family=token, known=False)
        return FamilyFilter(family=token, known=True, buckets=STATUS_FAMILIES[token])

    def buckets_for_status_family(self, family: Optional[str]) -> list[Bucket]:
        """
        Expand a coarse family ("RTO", "TRANSIT", ...) into its buckets.

        Returns [] for "ALL" (meaning *no filter*) and also for unknown names;
        use lookup_status_family() to tell the two apart.
        """
        return list(self.lookup_status_family(family).buckets)

    # ---- vendor dictionaries -------------------------------------------------

    def _dictionary_lookup(self, gen: _Generation, vendor: str, code: str) -> Optional[Bucket]:
        builtin = self._builtin.get(vendor)
        if builtin is not None and code in builtin:
            return builtin[code]
        external = gen.external.get(vendor)
        if external is not None and code in external:
            return external[code]
        return None

    def bucket_from_vendor_code(
        self, vendor_status_code: Optional[str], vendor_name: Optional[str]
    ) -> Optional[Bucket]:
        """
        Exact vendor-code lookup: cache -> built-in table -> external table.
        Returns None (not a default bucket) when no table knows the code.
        """
        vendor = normalize_token(vendor_name)
        code = normalize_token(vendor_status_code)
        if not vendor or not code:
            return None

        gen = self._generation
        cached = gen.cache.get(vendor, code)
        if cached is not None and cached.source == SOURCE_VENDOR:
            return cached.bucket

        bucket = self._dictionary_lookup(gen, vendor, code)
        if bucket is None:
            with self._lock:
                self._unmapped[(vendor, code)] += 1
            return None

        gen.cache.put(vendor, code, bucket, SOURCE_VENDOR)
        return bucket

    # ---- general entry point -------------------------------------------------

    def classify(
        self,
        status: Optional[str],
        status_code: Optional[str] = None,
        vendor_name: Optional[str] = None,
    ) -> Classification:
        """Like detect_bucket_from_free_text, but also reports which strategy won."""
        vendor = normalize_token(vendor_name)

        if vendor and status_code:
            direct = self.bucket_from_vendor_code(status_code, vendor)
            if direct is not None:
                return Classification(direct, SOURCE_VENDOR)

        gen = self._generation
        token = normalize_token(status_code) or normalize_token(status)
        cache_key = (vendor, token) if vendor and token else None
        if cache_key is not None:
            cached = gen.cache.get(*cache_key)
            if cached is not None:
                return Classification(cached.bucket, cached.source)

        text = combined_text(status, status_code)
        if not text:
            return Classification(DEFAULT_FREE_TEXT_BUCKET, SOURCE_DEFAULT)

        # RTO_DELIVERED text also satisfies the general RTO pattern
        if RTO_DELIVERED_RE.search(text):
            bucket: Optional[Bucket] = Bucket.RTO_DELIVERED
        else:
            bucket = match_keyword(text)

        if bucket is None:
            self._log("debug", "No keyword match for %r (vendor=%s)", text, vendor or "-")
            return Classification(DEFAULT_FREE_TEXT_BUCKET, SOURCE_DEFAULT)

        if cache_key is not None:
            gen.cache.put(*cache_key, bucket, SOURCE_KEYWORD)
        self._log("debug", "Keyword match %r -> %s", text, bucket.name)
        return Classification(bucket, SOURCE_KEYWORD)

    def detect_bucket_from_free_text(
        self,
        status: Optional[str],
        status_code: Optional[str] = None,
        vendor_name: Optional[str] = None,
    ) -> Bucket:
        """
        Combined resolution for raw tracking updates:
          1) vendor-code lookup when both code and vendor are given
          2) cached result for (vendor, code-or-status)
          3) RTO-delivered special case, then the ordered keyword table
          4) Bucket.ALL ("could not classify, do not exclude")
        """
        return self.classify(status, status_code, vendor_name).bucket

    # ---- predicates ----------------------------------------------------------

    is_rto_status = staticmethod(predicates.is_rto_status)
    is_ndr_status = staticmethod(predicates.is_ndr_status)
    is_delivered_status = staticmethod(predicates.is_delivered_status)
    is_final_status = staticmethod(predicates.is_final_status)

    # ---- external mappings + cache ------------------------------------------

    def _freeze_tables(self, mappings: Mapping[str, Any]) -> dict[str, Mapping[str, Bucket]]:
        tables: dict[str, dict[str, Bucket]] = {}
        for raw_vendor, codes in (mappings or {}).items():
            vendor = normalize_token(raw_vendor)
            if not vendor or not isinstance(codes, Mapping):
                self._log("warning", "Skipping vendor entry %r: expected a mapping of codes", raw_vendor)
                continue
            table = tables.setdefault(vendor, {})
            for raw_code, raw_bucket in codes.items():
                bucket = coerce_bucket(raw_bucket)
                code = normalize_token(raw_code)
                if not code or bucket is None:
                    self._log("warning", "Skipping %s:%r -> %r (unknown bucket)",
                              vendor, raw_code, raw_bucket)
                    continue
                table[code] = bucket
        return {v: MappingProxyType(t) for v, t in tables.items()}

    def load_external_vendor_mappings(self, mappings: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Replace (not merge) the externally sourced vendor tables and drop every
        cached resolution, as one swap.
        """
        external = MappingProxyType(self._freeze_tables(mappings))
        with self._lock:
            self._generation = _Generation(external=external, cache=LookupCache())
        self._log(
            "info",
            "Loaded external bucket mappings: %d vendor(s), %d code(s)",
            len(external),
            sum(len(t) for t in external.values()),
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._generation = replace(self._generation, cache=LookupCache())

    def invalidate_vendor_cache(self, vendor_name: Optional[str]) -> int:
        """Drop one vendor's cached resolutions; returns how many were dropped."""
        vendor = normalize_token(vendor_name)
        if not vendor:
            return 0
        with self._lock:
            old = self._generation
            self._generation = replace(old, cache=old.cache.without_vendor(vendor))
            dropped = len(old.cache) - len(self._generation.cache)
        self._log("debug", "Invalidated %d cached lookup(s) for %s", dropped, vendor)
        return dropped

    def update_vendor_mapping(
        self, vendor_name: Optional[str], status_code: Optional[str], bucket: Any
    ) -> Bucket:
        """
        Upsert one external entry. Raises ValueError for a blank vendor/code
        or a value that names no bucket. A built-in entry for the same code
        still takes precedence.
        """
        vendor = normalize_token(vendor_name)
        code = normalize_token(status_code)
        if not vendor or not code:
            raise ValueError("vendor and status code are required")
        resolved = coerce_bucket(bucket)
        if resolved is None:
            raise ValueError(f"Unknown bucket: {bucket!r}")

        with self._lock:
            old = self._generation
            table = dict(old.external.get(vendor, {}))
            table[code] = resolved
            external = dict(old.external)
            external[vendor] = MappingProxyType(table)
            self._generation = _Generation(
                external=MappingProxyType(external),
                cache=old.cache.without_vendor(vendor),
            )
            self._unmapped.pop((vendor, code), None)

        if code in self._builtin.get(vendor, {}):
            self._log("warning", "%s:%s is also a built-in code; the built-in bucket %s wins",
                      vendor, code, self._builtin[vendor][code].name)
        self._log("info", "Updated bucket mapping %s:%s -> %s", vendor, code, resolved.name)
        return resolved

    def remove_vendor_mapping(self, vendor_name: Optional[str], status_code: Optional[str]) -> bool:
        """Remove one external entry. Built-in entries are read-only; returns False for them."""
        vendor = normalize_token(vendor_name)
        code = normalize_token(status_code)
        with self._lock:
            old = self._generation
            table = old.external.get(vendor)
            if table is None or code not in table:
                return False
            remaining = {c: b for c, b in table.items() if c != code}
            external = dict(old.external)
            if remaining:
                external[vendor] = MappingProxyType(remaining)
            else:
                del external[vendor]
            self._generation = _Generation(
                external=MappingProxyType(external),
                cache=old.cache.without_vendor(vendor),
            )
        self._log("info", "Removed bucket mapping %s:%s", vendor, code)
        return True

    # ---- introspection -------------------------------------------------------

    def vendors(self) -> list[str]:
        return sorted(set(self._builtin) | set(self._generation.external))

    def external_mappings(self) -> dict[str, dict[str, Bucket]]:
        return {v: dict(t) for v, t in self._generation.external.items()}

    def all_mappings(
        self, vendor: Optional[str] = None, bucket: Any = None
    ) -> list[dict[str, Any]]:
        """
        Effective vendor entries (built-in wins over external), sorted by
        vendor then code, optionally filtered by vendor and/or bucket.
        """
        wanted_vendor = normalize_token(vendor)
        wanted_bucket = coerce_bucket(bucket) if bucket is not None else None
        gen = self._generation
        rows = []
        for name in sorted(set(self._builtin) | set(gen.external)):
            if wanted_vendor and name != wanted_vendor:
                continue
            builtin = self._builtin.get(name, {})
            merged = {c: (b, "external") for c, b in gen.external.get(name, {}).items()}
            merged.update({c: (b, "builtin") for c, b in builtin.items()})
            for code in sorted(merged):
                b, source = merged[code]
                if bucket is not None and b != wanted_bucket:
                    continue
                rows.append({"vendor": name, "status_code": code, "bucket": b, "source": source})
        return rows

    def cache_stats(self) -> dict[str, Any]:
        cache = self._generation.cache
        return {"total": len(cache), "vendors": cache.per_vendor()}

    def unmapped_statuses(self, vendor: Optional[str] = None, *, limit: int = 100) -> list[dict[str, Any]]:
        """Vendor codes that missed every table, most frequent first."""
        wanted = normalize_token(vendor)
        with self._lock:
            items: Iterable[tuple[tuple[str, str], int]] = list(self._unmapped.items())
        rows = [
            {"vendor": v, "status_code": c, "count": n}
            for (v, c), n in items
            if not wanted or v == wanted
        ]
        rows.sort(key=lambda r: (-r["count"], r["vendor"], r["status_code"]))
        return rows[: max(int(limit), 0)]


__all__ = [
    "StatusBucketResolver",
    "LookupCache",
    "CacheEntry",
    "Classification",
    "SOURCE_VENDOR",
    "SOURCE_KEYWORD",
    "SOURCE_DEFAULT",
]
