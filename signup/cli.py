"""CLI entrypoints for signup service operational tasks."""

from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Sequence

import uvicorn

from signup.config import get_settings
from signup.db.session import create_schema, dispose_engine


async def _run_init_db() -> int:
    """Create the users table when it does not exist."""
    settings = get_settings()
    try:
        await create_schema()
    finally:
        await dispose_engine()
    print(json.dumps({"initialized": True, "database": settings.database.url.split("://", 1)[0]}))
    return 0


def _run_serve(host: str | None, port: int | None) -> int:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "signup.main:create_app",
        factory=True,
        host=host or settings.app.host,
        port=port or settings.app.port,
        log_config=None,
    )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build command-line parser for supported operational commands."""
    parser = argparse.ArgumentParser(prog="python -m signup.cli")
    subcommands = parser.add_subparsers(dest="command", required=True)

    subcommands.add_parser("init-db", help="Create database tables.")

    serve_parser = subcommands.add_parser("serve", help="Run the HTTP service.")
    serve_parser.add_argument("--host", default=None, help="Override APP__HOST.")
    serve_parser.add_argument("--port", type=int, default=None, help="Override APP__PORT.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run CLI command."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "init-db":
        return asyncio.run(_run_init_db())
    if args.command == "serve":
        return _run_serve(host=args.host, port=args.port)
    parser.error("Unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
