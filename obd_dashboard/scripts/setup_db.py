"""CLI entry point: ``python -m obd_dashboard.scripts.setup_db``.

Creates any missing tables and makes sure the three default accounts
(``admin``, ``tester``, ``viewer``) exist.  Existing accounts are left
untouched unless ``--reset-passwords`` is given.
"""

from __future__ import annotations

import argparse
import os
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from obd_dashboard import crud
from obd_dashboard.config import settings
from obd_dashboard.db import session as db_session
from obd_dashboard.db.base import Base
from obd_dashboard.logging_config import configure_logging
from obd_dashboard.security import hash_password

logger = structlog.get_logger("obd_dashboard.setup_db")

DEFAULT_ACCOUNTS = (
    {"username": "admin", "email": "admin@example.com", "role": "admin"},
    {"username": "tester", "email": "tester@example.com", "role": "tester"},
    {"username": "viewer", "email": "viewer@example.com", "role": "viewer"},
)


def ensure_default_users(
    db: Session,
    passwords: Dict[str, str],
    reset_passwords: bool = False,
) -> List[str]:
    """Create missing default accounts; return the usernames created."""
    created = []
    for account in DEFAULT_ACCOUNTS:
        existing = crud.find_conflicting_user(db, account["username"], account["email"])
        if existing is not None:
            if reset_passwords:
                existing.password_hash = hash_password(passwords[account["role"]])
                crud.commit(db, "default_user_reset_failed", username=existing.username)
                logger.info("default_user_password_reset", username=existing.username)
            continue
        crud.create_user(
            db,
            username=account["username"],
            email=account["email"],
            password=passwords[account["role"]],
            role=account["role"],
        )
        created.append(account["username"])
        logger.info("default_user_created", username=account["username"], role=account["role"])
    return created


def _password(cli_value: Optional[str], env_name: str) -> str:
    value = cli_value or os.environ.get(env_name)
    if not value:
        raise SystemExit(f"Missing password: pass it on the command line or set {env_name}")
    if len(value) < 8:
        raise SystemExit(f"{env_name} must be at least 8 characters")
    return value


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="obd_dashboard.scripts.setup_db",
        description="Create dashboard tables and default accounts",
    )
    parser.add_argument("--admin-password", help="Defaults to $ADMIN_PASSWORD")
    parser.add_argument("--tester-password", help="Defaults to $TESTER_PASSWORD")
    parser.add_argument("--viewer-password", help="Defaults to $VIEWER_PASSWORD")
    parser.add_argument(
        "--reset-passwords",
        action="store_true",
        default=False,
        help="Overwrite passwords of existing default accounts",
    )
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        default=False,
        help="Assume the schema was created by 'alembic upgrade head'",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format)

    passwords = {
        "admin": _password(args.admin_password, "ADMIN_PASSWORD"),
        "tester": _password(args.tester_password, "TESTER_PASSWORD"),
        "viewer": _password(args.viewer_password, "VIEWER_PASSWORD"),
    }

    if not args.skip_create_tables:
        Base.metadata.create_all(bind=db_session.engine)
        logger.info("tables_created", tables=sorted(Base.metadata.tables))

    db = db_session.SessionLocal()
    try:
        created = ensure_default_users(db, passwords, reset_passwords=args.reset_passwords)
    finally:
        db.close()
    logger.info("setup_db_completed", created=created)


if __name__ == "__main__":
    main()
