#!/usr/bin/env python3
"""
Alembic wrapper for the LogiFlow schema.

Usage:
    python scripts/migrate.py upgrade [rev]         # Apply pending migrations (default: head)
    python scripts/migrate.py downgrade [rev]       # Roll back (default: -1)
    python scripts/migrate.py current               # Show current revision
    python scripts/migrate.py history               # Show migration history
    python scripts/migrate.py heads                 # Show heads
    python scripts/migrate.py new "message" [-a]    # Create a migration (-a: autogenerate)
    python scripts/migrate.py stamp [rev]           # Mark DB as migrated (databases built by init_db)
"""
import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv

load_dotenv()


def normalize_database_url(url: str) -> str:
    """Point SQLAlchemy at the psycopg 3 driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def get_alembic_config() -> Config:
    """Alembic config rooted at the project, with DATABASE_URL applied."""
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations_alembic"))

    db_url = os.environ.get("DATABASE_URL")
    if db_url:
        config.set_main_option("sqlalchemy.url", normalize_database_url(db_url))
    return config


def upgrade(revision: str = "head"):
    command.upgrade(get_alembic_config(), revision)
    print(f"OK Upgraded to: {revision}")


def downgrade(revision: str = "-1"):
    command.downgrade(get_alembic_config(), revision)
    print(f"OK Downgraded by: {revision}")


def current():
    command.current(get_alembic_config(), verbose=True)


def history():
    command.history(get_alembic_config(), verbose=True)


def heads():
    command.heads(get_alembic_config(), verbose=True)


def revision(message: str, autogenerate: bool = False):
    command.revision(get_alembic_config(), message=message, autogenerate=autogenerate)
    print(f"OK Created new migration: {message}")


def stamp(revision: str = "head"):
    """Record ``revision`` without running migrations."""
    command.stamp(get_alembic_config(), revision)
    print(f"OK Stamped database at: {revision}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage LogiFlow database migrations")
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upgrade")
    up.add_argument("revision", nargs="?", default="head")
    down = sub.add_parser("downgrade")
    down.add_argument("revision", nargs="?", default="-1")
    sub.add_parser("current")
    sub.add_parser("history")
    sub.add_parser("heads")
    new = sub.add_parser("new")
    new.add_argument("message")
    new.add_argument("-a", "--autogenerate", action="store_true")
    st = sub.add_parser("stamp")
    st.add_argument("revision", nargs="?", default="head")
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    if args.command == "upgrade":
        upgrade(args.revision)
    elif args.command == "downgrade":
        downgrade(args.revision)
    elif args.command == "current":
        current()
    elif args.command == "history":
        history()
    elif args.command == "heads":
        heads()
    elif args.command == "new":
        revision(args.message, autogenerate=args.autogenerate)
    elif args.command == "stamp":
        stamp(args.revision)


if __name__ == "__main__":
    main()
