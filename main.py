#!/usr/bin/env python3
"""
Accounts service -- user registration, session login, and user management.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 0.0.0.0 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Signs session cookies. Required unless DEBUG=true. Min 32 chars.
  DATABASE_URL   SQLAlchemy URL. Defaults to sqlite:///accounts.db next to this file.
  BCRYPT_ROUNDS  bcrypt work factor, 4-31. Default 12.
"""

import argparse

import uvicorn


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the accounts HTTP API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    return parser


def main(argv=None) -> None:
    args = _build_parser().parse_args(argv)
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
