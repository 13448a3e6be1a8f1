"""Command line entry point: ``wifidata load|nearby|serve``."""

from __future__ import annotations

import argparse
from dataclasses import asdict, replace
import json
import logging
import sys
from typing import Optional, Sequence

from .app import bootstrap
from .config import Settings, load_settings
from .ingest import STATUS_FAILED
from .server import serve


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        dest="config_path",
        default=None,
        help="Path to a YAML or TOML settings file",
    )
    common.add_argument(
        "--database-url",
        dest="database_url",
        default=None,
        help="SQLAlchemy database URL (overrides settings)",
    )

    parser = argparse.ArgumentParser(
        prog="wifidata",
        description="Load and query Mexico City public WiFi access points.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    load = commands.add_parser("load", parents=[common], help="Load the source into an empty store")
    load.add_argument("source", nargs="?", default=None, help="Path to an .xlsx or .csv source")

    nearby = commands.add_parser("nearby", parents=[common], help="List points closest to a coordinate")
    nearby.add_argument("--lat", required=True, help="Latitude in degrees")
    nearby.add_argument("--lon", required=True, help="Longitude in degrees")
    nearby.add_argument("--page", default=None, help="Zero-based page index")
    nearby.add_argument("--size", default=None, help="Page size")

    srv = commands.add_parser("serve", parents=[common], help="Serve the HTTP API")
    srv.add_argument("--host", default=None)
    srv.add_argument("--port", type=int, default=None)
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config_path)
    updates = {}
    if args.database_url:
        updates["database_url"] = args.database_url
    if getattr(args, "source", None):
        updates["source_path"] = args.source
    if getattr(args, "host", None):
        updates["host"] = args.host
    if getattr(args, "port", None) is not None:
        updates["port"] = args.port
    return replace(settings, **updates) if updates else settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = _settings_from_args(args)
    except (OSError, ValueError) as exc:
        print(f"wifidata: invalid settings: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = bootstrap(settings)

    if args.command == "load":
        print(json.dumps(asdict(app.load_report)))
        return 1 if app.load_report.status == STATUS_FAILED else 0

    if args.command == "nearby":
        params = {"lat": args.lat, "lon": args.lon}
        if args.page is not None:
            params["page"] = args.page
        if args.size is not None:
            params["size"] = args.size
        response = app.api.dispatch("/api/v1/wifi-points/nearby", params)
        print(json.dumps(response.body, ensure_ascii=False, indent=2))
        return 0 if response.status == 200 else 1

    serve(app.api, settings.host, settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
