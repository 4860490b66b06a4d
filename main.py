"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from usercache.config import Settings, load_settings
from usercache.database import Database, UserStoreError

logger = logging.getLogger("usercache.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=argparse.SUPPRESS,
        help="Path to a YAML settings file (default: USERCACHE_CONFIG)",
    )

    parser = argparse.ArgumentParser(description="User directory service utilities", parents=[common])
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", parents=[common], help="Initialise the user database")
    subparsers.add_parser("list-users", parents=[common], help="Print every stored user")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 8080)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users"}

    # "--config x.yaml list-users" names its command after the option.
    command_index = 0
    if args_list[:1] == ["--config"]:
        command_index = 2
    elif args_list and args_list[0].startswith("--config="):
        command_index = 1

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        candidate = args_list[command_index] if command_index < len(args_list) else None
        if candidate not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    args = parser.parse_args(args_list)
    if not hasattr(args, "config"):
        args.config = None
    return args


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(settings: Settings, database: Database) -> None:
    from usercache.application import create_application
    import uvicorn

    logger.info("Starting user directory API on http://%s:%s", settings.host, settings.port)
    app = create_application(settings, database=database)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


def _list_users(database: Database) -> None:
    total = database.count_users()
    if not total:
        print("No users found.\n")
        return

    print(f"{total} user(s) found:")
    print(f"{'Email':<32} {'Name':<24} Age")
    print("-" * 62)
    for user in database.get_all_users():
        print(f"{user.email:<32} {user.name:<24} {user.age}")
    print()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    overrides = {}
    if args.command == "serve":
        overrides = {"host": args.host, "port": args.port}

    try:
        settings = load_settings(args.config, **overrides)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        database = _initialise_database(settings)
        if args.command == "serve":
            _serve(settings, database)
        elif args.command == "list-users":
            _list_users(database)
        elif args.command == "init-db":
            print("Database initialisation complete.")
    except UserStoreError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
