"""Command-line entry point for the restock console package."""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from .core.config import get_settings
from .core.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="restock_console",
        description=(
            "Run the restock request desktop console or check that the "
            "backend API is reachable."
        ),
    )
    parser.add_argument("--api-base-url", help="Backend base URL (overrides RESTOCK_API_BASE_URL).")
    parser.add_argument("--dashboard-url", help="Embedded dashboard view URL.")
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO.")
    parser.add_argument(
        "--check-api",
        action="store_true",
        help="Fetch products, employees and history once, print the counts and exit.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse CLI arguments and dispatch to the requested workflow."""

    args = build_parser().parse_args(None if argv is None else list(argv))

    settings = get_settings().with_overrides(
        api_base_url=args.api_base_url,
        dashboard_url=args.dashboard_url,
        log_level=args.log_level,
    )
    configure_logging(settings.log_level, settings.log_dir)

    if args.check_api:
        from .services.api_client import APIClient, check_api

        return asyncio.run(check_api(APIClient(settings=settings)))

    from .app import run_app

    return run_app(settings)


if __name__ == "__main__":
    raise SystemExit(main())
