"""Command-line interface for statusrelay.

Provides the main entry point for running the relay server and for
checking configuration before deploying it.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="statusrelay",
        description="WebSocket relay for HTTP status documents",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/statusrelay.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the relay server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override server.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port")

    subparsers.add_parser("show-config", help="Print the effective configuration as JSON")

    return parser.parse_args(argv)


def _serve(settings, args: argparse.Namespace) -> None:
    """Build the application and hand it to uvicorn."""
    import uvicorn

    from statusrelay.relay.server import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    app = create_app(settings)
    logger.info("Serving relay on %s:%d%s", host, port, settings.relay.path)
    uvicorn.run(app, host=host, port=port, log_config=None)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the statusrelay CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from statusrelay.config.settings import load_settings
    from statusrelay.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        _serve(settings, args)

    elif args.command == "show-config":
        print(settings.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
