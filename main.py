"""Command-line interface for the account self-service application."""

from __future__ import annotations

import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence

from selfserve.config import Settings, load_settings
from selfserve.database import Database, DuplicateEmailError
from selfserve.passwords import PasswordHasher

logger = logging.getLogger("selfserve.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Account self-service utilities")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to a YAML settings file (defaults to SELFSERVE_CONFIG or config/selfserve.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the account database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    create_parser = subparsers.add_parser("create-user", help="Create an account")
    create_parser.add_argument("first_name", help="Given name")
    create_parser.add_argument("last_name", help="Family name")
    create_parser.add_argument("email", help="Unique email address for login")
    create_parser.add_argument("--role", default="user", help="Account role (default: user)")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help") or first == "--config":
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(
    *,
    settings: Settings,
    database: Database,
    host: str,
    port: int,
    ssl_certfile: str | None,
    ssl_keyfile: str | None,
) -> None:
    from selfserve.application import create_application
    import uvicorn

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info("Starting account service on %s://%s:%s", protocol, host, port)

    app = create_application(settings, database=database)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _prompt_for_password(min_length: int) -> str | None:
    for _ in range(3):
        password = getpass(f"Password (min {min_length} characters): ")
        if len(password) < min_length or not password.strip():
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(settings: Settings, database: Database, args: argparse.Namespace) -> int:
    password = _prompt_for_password(settings.password_min_length)
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    name = f"{args.first_name.strip()} {args.last_name.strip()}"
    try:
        user = database.create_user(name, args.email, hasher.hash(password), role=args.role)
    except (DuplicateEmailError, ValueError) as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.name} <{user.email}>")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    config_path = Path(args.config_path) if args.config_path else None
    settings = load_settings(config_path)
    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(
            settings=settings,
            database=database,
            host=getattr(args, "host", "127.0.0.1"),
            port=getattr(args, "port", 8000),
            ssl_certfile=getattr(args, "ssl_certfile", None),
            ssl_keyfile=getattr(args, "ssl_keyfile", None),
        )
    elif args.command == "init-db":
        print("Database initialisation complete.")
    elif args.command == "create-user":
        return _create_user(settings, database, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
