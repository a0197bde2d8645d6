import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from main import _create_user, _initialise_database
from selfserve.config import load_settings


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a self-service account")
    parser.add_argument("first_name", help="Given name")
    parser.add_argument("last_name", help="Family name")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument("--role", default="user", help="Account role (default: user)")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to a YAML settings file (defaults to SELFSERVE_CONFIG or config/selfserve.yaml)",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (overrides the configured location)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings(Path(args.config_path) if args.config_path else None)
    if args.db_path:
        settings = replace(settings, database_path=Path(args.db_path).expanduser().resolve())

    database = _initialise_database(settings)
    return _create_user(settings, database, args)


if __name__ == "__main__":
    raise SystemExit(main())
