# src/shipment_buckets/config/logging_config.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOGGER_NAME = "shipment_buckets"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LevelLike = Optional[Union[int, str]]


def _coerce_level(level: LevelLike) -> int:
    """int passes through; names are case-insensitive; else LOG_LEVEL, else INFO."""
    if level is None:
        level = os.getenv("LOG_LEVEL") or None
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name == "WARN":
            name = "WARNING"
        resolved = logging.getLevelName(name)
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def _has_console(logger: logging.Logger) -> bool:
    # FileHandler subclasses StreamHandler; only count real console streams
    return any(
        type(h) is logging.StreamHandler and h.stream in (sys.stderr, sys.stdout)
        for h in logger.handlers
    )


def _has_file(logger: logging.Logger, path: Path) -> bool:
    target = str(path.resolve())
    return any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler.setLevel(logger.level)
    logger.addHandler(handler)


def get_logger(
    name: Optional[str] = None,
    *,
    level: LevelLike = None,
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    propagate: bool = False,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Return the named logger (package logger by default) with a stderr handler
    and/or a rotating file handler attached.

    Repeated calls never stack duplicate handlers; a file target passed on a
    later call is added next to the existing console handler.
    """
    logger = logging.getLogger(name or DEFAULT_LOGGER_NAME)
    logger.setLevel(_coerce_level(level))
    logger.propagate = propagate
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if console and not _has_console(logger):
        _attach(logger, logging.StreamHandler(stream=sys.stderr), formatter)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not _has_file(logger, path):
            _attach(
                logger,
                RotatingFileHandler(
                    str(path),
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding="utf-8",
                    delay=True,
                ),
                formatter,
            )
    return logger


__all__ = ["DEFAULT_LOGGER_NAME", "get_logger"]
