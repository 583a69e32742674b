"""Command-line entrypoint for radar_visibility."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from radar_visibility.contracts import (
    BoundaryMode,
    Coordinate,
    InvalidReceiverConfigError,
    ReceiverConfig,
    VisibilityResult,
)
from radar_visibility.ingest.factory import create_elevation_source
from radar_visibility.ingest.rate_limit import AsyncRateLimiter
from radar_visibility.orchestrate.calculate import calculate_visibility
from radar_visibility.settings import Settings, settings_from_env

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging to stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _min_vertices(value: str) -> int:
    count = int(value)
    if count < 3:
        raise argparse.ArgumentTypeError("must be an integer >= 3")
    return count


def build_parser() -> argparse.ArgumentParser:
    """Create and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="radar_visibility",
        description="Radar line-of-sight visibility calculator.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command")
    calc = subparsers.add_parser(
        "calculate",
        help="Sample terrain around a receiver and write the visibility GeoJSON.",
    )
    calc.add_argument("--lat", type=float, required=True)
    calc.add_argument("--lon", type=float, required=True)
    calc.add_argument("--radius", type=float, required=True, help="Radius in meters.")
    calc.add_argument("--height", type=float, required=True, help="Receiver height in meters.")
    calc.add_argument("--cone-angle", type=float, default=10.0, help="Radar cone angle in degrees.")
    calc.add_argument("--bearing-step", type=float, default=10.0)
    calc.add_argument("--step-distance", type=float, default=100.0)
    calc.add_argument("--ground-offset", action="store_true", help="Add ground elevation at center.")
    calc.add_argument("--mode", choices=[m.value for m in BoundaryMode], default=BoundaryMode.OUTER.value)
    calc.add_argument("--min-vertices", type=_min_vertices, default=None)
    calc.add_argument("--provider", choices=["mock", "open-elevation"], default=None)
    calc.add_argument("--output", default=None, help="Write GeoJSON here instead of stdout.")

    serve = subparsers.add_parser("serve", help="Run the HTTP API (lookup proxy + visibility).")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3001)

    return parser


async def _run_calculation(args: argparse.Namespace, settings: Settings) -> VisibilityResult:
    config = ReceiverConfig(
        center=Coordinate(lon=args.lon, lat=args.lat),
        radius_m=args.radius,
        height_m=args.height,
        cone_angle_deg=args.cone_angle,
        bearing_step_deg=args.bearing_step,
        step_distance_m=args.step_distance,
        use_ground_offset=args.ground_offset,
    )
    source = create_elevation_source(settings, config.center)

    def on_progress(done: int, total: int) -> None:
        logger.debug("progress %d/%d", done, total)

    try:
        return await calculate_visibility(
            config,
            source,
            mode=BoundaryMode(args.mode),
            min_vertices=settings.min_vertices if args.min_vertices is None else args.min_vertices,
            circle_steps=settings.circle_steps,
            limiter=AsyncRateLimiter(settings.rate_limit_per_s),
            on_progress=on_progress,
        )
    finally:
        close = getattr(source, "aclose", None)
        if close is not None:
            await close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        return 0

    settings = settings_from_env()
    if getattr(args, "provider", None):
        settings = replace(settings, elevation_provider=args.provider)
    setup_logging(settings.log_level)

    if args.command == "calculate":
        try:
            result = asyncio.run(_run_calculation(args, settings))
        except InvalidReceiverConfigError as exc:
            parser.error(str(exc))
        body = json.dumps(result.to_feature_collection(), indent=2)
        if args.output:
            Path(args.output).write_text(body + "\n", encoding="utf-8")
            logger.info("GeoJSON written to %s", args.output)
        else:
            print(body)
        return 0

    if args.command == "serve":
        import uvicorn

        from radar_visibility.api.app import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
