import argparse
import getpass
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from usercache.database import Database, UserStoreError, resolve_database_path
from usercache.models import User


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user record")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("age", type=int, help="Age in years (must be at least 18)")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERCACHE_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args(argv)


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main(argv=None) -> int:
    args = parse_args(argv)
    password = prompt_for_password()

    db_env = args.db_path or os.getenv("USERCACHE_DB_PATH")
    database = Database(resolve_database_path(db_env))
    database.initialize()

    user = User(email=args.email.strip(), password=password, name=args.name.strip(), age=args.age)
    try:
        database.create_user(user)
    except UserStoreError as exc:  # duplicates, under-age, etc.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
