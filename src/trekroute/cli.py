"""CLI entry point for the TrekRoute server."""

from __future__ import annotations

import argparse
import json
import os
import socket
import sys
from pathlib import Path
from typing import Any

from trekroute.config.settings import CLI_OVERRIDES_ENV, CONFIG_FILE_ENV, Settings
from trekroute.observability.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trekroute",
        description="TrekRoute — Experiment-routed search across SQLite backends",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    parser.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"TrekRoute {_get_version()}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point for the TrekRoute server."""
    args = build_parser().parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    overrides = _cli_overrides(args)
    settings.apply_overrides(overrides)

    setup_logging(settings.observability)

    if not _port_available(settings.server.host, settings.server.port):
        print(f"Error: Port {settings.server.port} is already in use.", file=sys.stderr)
        print(f"  Run 'lsof -i :{settings.server.port}' to find the process.", file=sys.stderr)
        sys.exit(1)

    import uvicorn

    # The factory builds its own Settings in each worker process.
    _export_overrides(overrides, args.config)
    uvicorn.run(
        "trekroute.api.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers if not args.reload else 1,
        reload=args.reload,
        log_level=settings.observability.log_level.lower(),
    )


def _cli_overrides(args: argparse.Namespace) -> dict[str, dict[str, Any]]:
    """Collect the flags that were actually given, grouped by settings section."""
    server = {
        key: value
        for key, value in (("host", args.host), ("port", args.port), ("workers", args.workers))
        if value
    }
    overrides: dict[str, dict[str, Any]] = {}
    if server:
        overrides["server"] = server
    if args.log_level:
        overrides["observability"] = {"log_level": args.log_level}
    return overrides


def _export_overrides(overrides: dict[str, dict[str, Any]], config_path: str | None) -> None:
    """Expose the config file and flag overrides to the app factory process."""
    if config_path:
        os.environ[CONFIG_FILE_ENV] = str(Path(config_path).resolve())
    os.environ[CLI_OVERRIDES_ENV] = json.dumps(overrides)


def _port_available(host: str, port: int) -> bool:
    """Return True if ``port`` can be bound on ``host``."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host if host != "0.0.0.0" else "127.0.0.1", port))
    except OSError:
        return False
    finally:
        sock.close()
    return True


def _get_version() -> str:
    """Get the package version."""
    try:
        from trekroute import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
