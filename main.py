#!/usr/bin/env python3
"""
AuthGate -- minimal authentication gateway.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 9000
  python main.py --reload

Environment variables (see core/config.py):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL of the user store.
  PORT           Listening port (default 8000). --port overrides it.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the AuthGate API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port to listen on (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
