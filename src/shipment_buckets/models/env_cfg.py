from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class EnvCfg:
    """Minimal shape we need from get_app_env()."""
    BUCKET_MAPPINGS_FILE: str = ""
    BUCKET_MAPPINGS_URL: str = ""
    BUCKET_MAPPINGS_TOKEN: str = ""

    @property
    def has_mapping_source(self) -> bool:
        return bool(self.BUCKET_MAPPINGS_FILE or self.BUCKET_MAPPINGS_URL)
