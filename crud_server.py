#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
User CRUD API server (SQLite + FastAPI)

Commands:
  init                Create the users and operation_log tables, then exit
  serve               Create the tables and serve the HTTP API (default port 8080)

Notes:
- The database path comes from --db, then USER_API_DB_PATH, then config.yaml, then ./users.db.
- `serve --open index.html` opens a local page in the default browser once the server is up.
"""

import argparse
import logging
import os
import sys
import threading
import webbrowser
from pathlib import Path

import uvicorn

from user_api.api import create_app
from user_api.db import get_db_path, read_config
from user_api.errors import StorageError
from user_api.services.user_svc import UserService

logger = logging.getLogger("user_api.server")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_OPEN_DELAY = 3.0


# ---------------- helpers ----------------

def to_browser_target(target: str) -> str:
    """URLs pass through; anything else is treated as a local file."""
    if "://" in target:
        return target
    return Path(target).resolve().as_uri()


def open_later(target: str, delay: float) -> threading.Timer:
    def _open():
        try:
            if not webbrowser.open(to_browser_target(target)):
                logger.warning("no browser available to open %s", target)
        except webbrowser.Error as e:
            logger.warning("failed to open %s: %s", target, e)

    timer = threading.Timer(delay, _open)
    timer.daemon = True
    timer.start()
    return timer


def resolve_db(args) -> str:
    return args.db or get_db_path()


# ---------------- commands ----------------

def cmd_init(args):
    db_path = resolve_db(args)
    UserService(db_path).ensure_schema()
    print(f"Initialized database at {db_path}")


def cmd_serve(args):
    cfg = read_config()
    host = args.host or cfg.get("host", DEFAULT_HOST)
    port = args.port or cfg.get("port", DEFAULT_PORT)
    db_path = resolve_db(args)

    app = create_app(db_path)
    logger.info("server listening on port %s", port)
    logger.info("open http://localhost:%s for the API index", port)
    logger.info("open http://localhost:%s/health for the health check", port)
    if args.open:
        logger.info("opening %s in %.0fs", args.open, args.open_delay)
        open_later(args.open, args.open_delay)
    uvicorn.run(app, host=host, port=port)


# ---------------- Entry ----------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="User CRUD API server (SQLite + FastAPI)")
    parser.add_argument("--db", default=None, help="SQLite file (default: USER_API_DB_PATH / config.yaml / ./users.db)")
    parser.add_argument("--log-level", default=os.environ.get("USER_API_LOG_LEVEL", "INFO"))
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create tables and exit")
    p_init.set_defaults(func=cmd_init)

    p_serve = sub.add_parser("serve", help="serve the HTTP API")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--open", default=None, help="file or URL to open in the browser after startup")
    p_serve.add_argument("--open-delay", type=float, default=DEFAULT_OPEN_DELAY)
    p_serve.set_defaults(func=cmd_serve)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    try:
        args.func(args)
    except StorageError as e:
        logger.error("startup failed: %s (%s)", e.message, e.__cause__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
