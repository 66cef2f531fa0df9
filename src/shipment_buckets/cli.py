# src/shipment_buckets/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config.logging_config import get_logger
from .io.paths import derive_output_paths
from .config.env import EnvError, get_app_env
from .pipelines.workbook_processor import InputReadError, WorkbookProcessor
from .rules.resolver import StatusBucketResolver


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shipment-buckets",
        description="Classify a tracking export into canonical shipment buckets and emit a *_processed.xlsx next to the input.",
    )
    p.add_argument("input", type=Path, help="Path to input .xlsx or .csv file.")
    p.add_argument(
        "--mappings",
        type=Path,
        default=None,
        help="JSON file of external vendor mappings (vendor -> code -> bucket). Overrides BUCKET_MAPPINGS_FILE.",
    )
    p.add_argument(
        "--mappings-url",
        default=None,
        help="Config endpoint serving external vendor mappings. Overrides BUCKET_MAPPINGS_URL.",
    )
    p.add_argument(
        "--family",
        default=None,
        help="Only keep rows in this status family (e.g. RTO, TRANSIT, READY-TO-SHIP). Default: ALL.",
    )
    p.add_argument(
        "--no-console",
        action="store_true",
        help="Disable console logging (file logging remains).",
    )
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: LOG_LEVEL or INFO",
    )
    p.add_argument(
        "--strict-env",
        action="store_true",
        help="Require BUCKET_MAPPINGS_FILE or BUCKET_MAPPINGS_URL to be set; otherwise exit 2.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        processed_path, log_path = derive_output_paths(args.input, family=args.family)
    except FileNotFoundError:
        print(f"error: input file not found: {args.input}", file=sys.stderr)
        return 2

    logger = get_logger(
        "shipment_buckets",
        level=args.log_level,
        console=not args.no_console,
        log_file=log_path,
    )
    logger.info("Input: %s", args.input)
    logger.info("Processed output: %s", processed_path)
    logger.info("Log file: %s", log_path)

    try:
        env_cfg = get_app_env(strict=args.strict_env and not (args.mappings or args.mappings_url))
    except EnvError as e:
        logger.error("Environment error: %s", e)
        return 2

    # Lazy imports to keep startup light
    import requests
    from .api.mapping_source import FileMappingSource, HttpMappingSource, source_from_env
    from .io.mappings import MappingDocumentError

    if args.mappings:
        source = FileMappingSource(args.mappings)
    elif args.mappings_url:
        source = HttpMappingSource(
            args.mappings_url, token=env_cfg.BUCKET_MAPPINGS_TOKEN or None, logger=logger)
    else:
        source = source_from_env(env_cfg)

    mappings = None
    if source is not None:
        try:
            mappings = source.fetch()
        except (FileNotFoundError, MappingDocumentError) as e:
            logger.error("Could not load external mappings: %s", e)
            return 2
        except requests.RequestException as e:
            logger.error("Mapping endpoint failed: %s", e)
            return 2
    else:
        logger.debug("No external mapping source configured; using built-in tables only.")

    try:
        processor = WorkbookProcessor(
            logger,
            resolver=StatusBucketResolver(logger),
            family=args.family,
        )
        summary = processor.process(args.input, processed_path, mappings)
    except FileNotFoundError as e:
        logger.error("Input missing: %s", e)
        return 2
    except InputReadError as e:
        logger.error("Input unreadable: %s", e)
        return 2
    except Exception as e:
        logger.exception("Failed to process tracking export: %s", e)
        return 1

    logger.info("Rows: %d in, %d out (family=%s)",
                summary["input_rows"], summary["output_rows"], summary["family"])
    logger.info("Done.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
