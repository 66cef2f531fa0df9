# src/shipment_buckets/config/env.py
from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import dotenv_values, find_dotenv, load_dotenv

from shipment_buckets.models import EnvCfg


class EnvError(RuntimeError):
    """No usable mapping source in a run that requires one."""


# A strict run needs at least one of these
MAPPING_SOURCE_KEYS: Tuple[str, ...] = (
    "BUCKET_MAPPINGS_FILE",
    "BUCKET_MAPPINGS_URL",
)


def _nearest_dotenv(start: Optional[Path]) -> Optional[Path]:
    if start is None:
        found = find_dotenv(filename=".env", usecwd=True)
        return Path(found) if found else None
    here = Path(start).resolve()
    return next(
        (d / ".env" for d in (here, *here.parents) if (d / ".env").is_file()),
        None,
    )


def load_project_dotenv(start: Optional[Path] = None, *, override: bool = False) -> Path:
    """
    Load the closest `.env` at or above `start` (default: CWD) into os.environ.

    Returns the resolved file path, or Path() when there is none.
    """
    found = _nearest_dotenv(start)
    if found is None or not found.is_file():
        return Path()
    load_dotenv(dotenv_path=found, override=override)
    return found.resolve()


def load_env(dotenv_path: Optional[Path] = None, *, override: bool = False) -> Dict[str, str]:
    """
    Push a .env file into os.environ and return what the file itself defines.

    With no `dotenv_path` the nearest project .env is used. A missing file
    yields {}. Values already in the process environment are kept unless
    `override` is set.
    """
    if dotenv_path:
        path = Path(dotenv_path)
        if not path.is_file():
            return {}
        load_dotenv(dotenv_path=path, override=override)
    else:
        path = load_project_dotenv(override=override)
        if not path.is_file():
            return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def get_app_env(dotenv_path: Path | str | None = ".env", *, strict: bool = False) -> EnvCfg:
    """
    Read the mapping-source settings into an EnvCfg.

    `dotenv_path=None` skips file loading entirely. The process environment
    takes precedence over the file. In strict mode an EnvError is raised
    unless BUCKET_MAPPINGS_FILE or BUCKET_MAPPINGS_URL is set.
    """
    if dotenv_path:
        load_env(Path(dotenv_path))

    cfg = EnvCfg(**{f.name: os.getenv(f.name, "").strip() for f in fields(EnvCfg)})

    if strict and not cfg.has_mapping_source:
        raise EnvError(
            "Missing required environment variable: one of "
            + ", ".join(MAPPING_SOURCE_KEYS))
    return cfg


__all__ = [
    "EnvError",
    "MAPPING_SOURCE_KEYS",
    "load_project_dotenv",
    "load_env",
    "get_app_env",
]
