"""
startup.py — Database Startup Schema Sync (Idempotent)

Tables and indexes are defined in the ORM models and created via
Base.metadata.create_all(checkfirst=True). PostgreSQL-only CHECK constraints
that the ORM doesn't express are added here.

Called by: main.py lifespan
Depends on: database.py (engine), models (Base)
"""

import logging
import os

from sqlalchemy import text as sqltext
from sqlalchemy.exc import SQLAlchemyError

from .database import engine

log = logging.getLogger(__name__)

_CHECK_CONSTRAINTS = {
    "ck_clients_sync_status": (
        "clients",
        "sync_status IN ('idle', 'syncing', 'success', 'error')",
    ),
    "ck_clients_overall_health": (
        "clients",
        "overall_health IN ('on-track', 'needs-work', 'critical')",
    ),
    "ck_client_integrations_provider": (
        "client_integrations",
        "provider IN ('clickup', 'google_analytics', 'google_business', "
        "'google_search_console', 'yelp')",
    ),
}


def run_startup_migrations() -> None:
    """Execute all idempotent startup operations. Safe to call on every app boot."""
    if os.environ.get("TESTING"):
        log.info("TESTING mode — skipping startup migrations")
        return

    from .models import Base

    Base.metadata.create_all(bind=engine, checkfirst=True)
    log.info("ORM schema sync complete (create_all checkfirst=True)")

    if engine.dialect.name == "postgresql":
        with engine.connect() as conn:
            _add_check_constraints(conn)
    log.info("Startup migrations complete")


def _add_check_constraints(conn) -> None:
    for name, (table, condition) in _CHECK_CONSTRAINTS.items():
        exists = conn.execute(
            sqltext("SELECT 1 FROM pg_constraint WHERE conname = :name"), {"name": name}
        ).first()
        if exists:
            continue
        try:
            conn.execute(sqltext(f"ALTER TABLE {table} ADD CONSTRAINT {name} CHECK ({condition})"))
            conn.commit()
        except SQLAlchemyError as e:
            log.warning("DDL failed: %s", e)
            conn.rollback()
