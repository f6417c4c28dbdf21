"""CLI entrypoint for the region-partitioned proximity finder."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from geofinder.common.config_loader import FinderSettings, load_finder_config
from geofinder.common.constants import COMMANDS, DEFAULT_SAMPLE_BBOX, EXIT_HARD_FAIL, EXIT_SUCCESS
from geofinder.common.errors import FinderError
from geofinder.common.logging import build_logger, generate_run_id, log_event
from geofinder.common.schema import validate_radius_km
from geofinder.index.builder import ProximityIndex, build, summarise
from geofinder.index.query import search
from geofinder.ingest.boundaries import load_regions
from geofinder.ingest.points import load_point_records
from geofinder.ingest.sample_points import generate_points, write_points_csv

UVICORN_LOG_LEVELS = {"DEBUG": "debug", "INFO": "info", "WARN": "warning", "ERROR": "error"}


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config", default="./config/finder.yml")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--longitude", type=float, default=None)
    parser.add_argument("--latitude", type=float, default=None)
    parser.add_argument("--radius-km", type=float, default=None)
    parser.add_argument("--output", default=None)
    parser.add_argument("--rows", type=int, default=100_000)
    parser.add_argument("--seed", type=int, default=42)
    return parser.parse_args(argv)


def build_index(settings: FinderSettings, logger: logging.Logger, run_id: str) -> ProximityIndex:
    regions = load_regions(settings.regions, logger=logger, run_id=run_id)
    records = load_point_records(settings.points, logger=logger, run_id=run_id)
    return build(regions, records, workers=settings.workers, logger=logger, run_id=run_id)


def _sample_points(args: argparse.Namespace, logger: logging.Logger, run_id: str) -> int:
    if not args.output:
        raise SystemExit("sample-points requires --output")
    records = generate_points(rows=args.rows, seed=args.seed, bbox=DEFAULT_SAMPLE_BBOX)
    path = write_points_csv(Path(args.output), records)
    log_event(logger, "sample points written", run_id=run_id, stage="sample", event="SAMPLE_WRITTEN", status="ok", rows_out=len(records))
    print(str(path))
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)

    if args.command == "sample-points":
        return _sample_points(args, logger, run_id)

    if args.command == "query" and (args.longitude is None or args.latitude is None):
        raise SystemExit("query requires --longitude and --latitude")

    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    try:
        settings = load_finder_config(Path(args.config), overlay_config_dir=overlay_config_dir)
        if args.radius_km is not None:
            settings = replace(settings, query=replace(settings.query, radius_km=validate_radius_km(args.radius_km)))
        index = build_index(settings, logger, run_id)
    except FinderError as exc:
        log_event(
            logger,
            f"startup failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage="build",
            event="BUILD_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception:
        log_event(
            logger,
            "unexpected startup failure",
            level=logging.ERROR,
            run_id=run_id,
            stage="build",
            event="BUILD_FAIL",
            status="error",
            error_code="UNEXPECTED_ERROR",
        )
        return EXIT_HARD_FAIL

    if args.command == "build":
        print(json.dumps(summarise(index).to_dict(), indent=2, sort_keys=True))
    elif args.command == "query":
        print(json.dumps(search(index, args.longitude, args.latitude, settings.query)))
    elif args.command == "serve":
        from geofinder.service.app import serve

        log_event(logger, "server start", run_id=run_id, stage="serve", event="SERVE_START", status="ok")
        serve(index, settings.query, host=settings.host, port=settings.port, log_level=UVICORN_LOG_LEVELS[args.log_level])
    else:
        raise ValueError(f"Unknown command: {args.command}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except FinderError:
        return EXIT_HARD_FAIL
    except Exception:
        logging.getLogger("geofinder").exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
