"""Command-line entry point: run the server and manage publishers."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Optional, Sequence

from .config import load_settings
from .logging_config import configure_logging
from .utils.auth import encode_password, save_authority

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(
        prog="mavenrepo",
        description="mavenrepo: Maven artifact repository server.",
    )
    subparsers = argument_parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the development server.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    hash_password = subparsers.add_parser(
        "hash-password",
        help="Print the stored form of a publisher password.",
    )
    hash_password.add_argument("--password", default=None)

    add_authority = subparsers.add_parser(
        "add-authority",
        help="Create or replace a publisher in the catalog table.",
    )
    add_authority.add_argument("username")
    add_authority.add_argument(
        "--prefix",
        dest="prefixes",
        action="append",
        required=True,
        help="Path prefix the publisher may write to, e.g. /public/com/example/.",
    )
    add_authority.add_argument("--password", default=None)
    return argument_parser


def _read_password(value: Optional[str]) -> str:
    if value:
        return value
    return getpass.getpass("Publisher password: ")


def main(argv: Optional[Sequence[str]] = None) -> int:
    configure_logging()
    parsed_args = build_arg_parser().parse_args(argv)

    if parsed_args.command == "serve":
        from .webapp import create_app

        create_app().run(host=parsed_args.host, port=parsed_args.port)
        return 0

    if parsed_args.command == "hash-password":
        print(encode_password(_read_password(parsed_args.password)))
        return 0

    settings = load_settings()
    if not settings.catalog_table:
        print("CATALOG_TABLE must name the catalog table.", file=sys.stderr)
        return 2

    from .storage.dynamodb import DynamoDBCatalogStore

    store = DynamoDBCatalogStore(settings.catalog_table)
    authority = save_authority(
        store,
        parsed_args.username,
        _read_password(parsed_args.password),
        parsed_args.prefixes,
    )
    logger.info(
        "Saved publisher %s with prefixes %s", authority.name, authority.authority
    )
    print(f"Saved publisher '{authority.name}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
