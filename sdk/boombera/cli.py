"""
Command line interface for Boombera.

Usage:
    boombera install content
    boombera version [content]
    boombera put content /articles/1 '"Hello"'
    boombera map content /latest /articles/1
    boombera get content /latest
    boombera paths content

Bodies are given and printed as JSON; a BODY that is not valid JSON is
stored as a plain string.

Invariants:
    - Library errors print "error: ..." to stderr and exit with code 1
    - get of a missing path exits with code 1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

import json_log_formatter

from .config import Settings, get_settings
from .content_item import Found
from .database import DocumentServer, create_server
from .design import install_design_doc
from .errors import BoomberaError
from .store import Boombera
from .version import current_version, database_version

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    formatter: logging.Formatter
    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_body(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boombera",
        description="Path-addressed content store on CouchDB",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser("install", help="Create or update the design document")
    install.add_argument("database")

    version = subparsers.add_parser("version", help="Show library and database versions")
    version.add_argument("database", nargs="?")

    get = subparsers.add_parser("get", help="Print the content at a path")
    get.add_argument("database")
    get.add_argument("path")

    put = subparsers.add_parser("put", help="Store content at a path")
    put.add_argument("database")
    put.add_argument("path")
    put.add_argument("body", help="JSON value, or a plain string")

    map_ = subparsers.add_parser("map", help="Alias a path to another path")
    map_.add_argument("database")
    map_.add_argument("path")
    map_.add_argument("target")

    paths = subparsers.add_parser("paths", help="List stored paths")
    paths.add_argument("database")

    return parser


def run(args: argparse.Namespace, server: DocumentServer) -> int:
    if args.command == "install":
        rev = install_design_doc(args.database, server=server)
        print(f"Installed Boombera {current_version()} design document (rev {rev})")
        return 0

    if args.command == "version":
        print(f"library: {current_version()}")
        if args.database:
            found = None
            if server.has_database(args.database):
                found = database_version(server.database(args.database))
            print(f"database: {found or 'none'}")
        return 0

    store = Boombera(args.database, server=server)

    if args.command == "get":
        result = store.get(args.path)
        if not isinstance(result, Found):
            print(f"not found: {result.path}", file=sys.stderr)
            return 1
        print(json.dumps(result.item.body))
        return 0

    if args.command == "put":
        store.put(args.path, parse_body(args.body))
        return 0

    if args.command == "map":
        store.map(args.path, args.target)
        return 0

    if args.command == "paths":
        for path in store.paths():
            print(path)
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None, server: Optional[DocumentServer] = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        server: Document server (defaults to one built from settings)

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    owns_server = server is None
    if server is None:
        settings = get_settings()
        setup_logging(settings)
        settings.log_config()
        server = create_server(settings)

    try:
        return run(args, server)
    except BoomberaError as e:
        logger.debug("Command failed", extra={"command": args.command, "code": e.code})
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    finally:
        if owns_server:
            server.close()
