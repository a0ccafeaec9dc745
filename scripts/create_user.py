#!/usr/bin/env python3
"""
Create a marketplace user and print a bearer token for it.

Usage:
    python scripts/create_user.py alice@example.com "Alice" client
    python scripts/create_user.py bob@example.com "Bob" agent --ttl 86400
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.api.auth import issue_token
from app.core.config import load_settings
from app.domain.value_objects import UserRole
from database_pg_module import Database
from logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a LogiFlow user")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("role", choices=[role.value for role in UserRole])
    parser.add_argument("--ttl", type=int, default=None, help="Token lifetime in seconds")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    settings = load_settings()

    db = Database(settings.database_url)
    try:
        existing = db.get_user_by_email(args.email)
        if existing:
            user_id = existing["user_id"]
            role = existing["role"]
            print(f"⚠️ User already exists: {user_id} ({role})")
        else:
            user_id = db.add_user(args.email.strip().lower(), args.name.strip(), args.role)
            role = args.role
            print(f"✅ User created: {user_id} ({role})")
    finally:
        db.close()

    ttl = args.ttl if args.ttl is not None else settings.auth_token_ttl
    print(issue_token(settings.auth_secret, user_id, role, ttl))
    return 0


if __name__ == "__main__":
    sys.exit(main())
