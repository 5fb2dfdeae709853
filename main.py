#!/usr/bin/env python3
"""
Task Server -- task management REST backend with bearer-token auth.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG          true to auto-generate SECRET_KEY for local development.
  DATABASE_URL   SQLAlchemy URL. Defaults to ./taskserver.db (SQLite).
  DB_USER        Optional database user merged into DATABASE_URL.
  DB_PASSWORD    Optional database password merged into DATABASE_URL.
  HOST / PORT    Listen address. Defaults to 127.0.0.1:5000.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Run the task server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"Server running on port {args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
