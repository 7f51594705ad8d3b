from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns we must ensure exist in the "event" table.
# (name, sqlite_type, postgres_type, default clause)
REQUIRED_EVENT_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("registration_phase", "VARCHAR", "VARCHAR", "DEFAULT 'open'"),
]

# Columns we must ensure exist in the "category" table.
# Databases created before slot repair became versioned lack bracket_version.
REQUIRED_CATEGORY_COLUMNS: List[Tuple[str, str, str, str]] = [
    ("bracket_capacity", "INTEGER", "INTEGER", "DEFAULT 4"),
    ("bracket_version", "INTEGER", "INTEGER", "DEFAULT 0"),
    ("bracket_state", "VARCHAR", "VARCHAR", "DEFAULT 'preview'"),
    ("locked_at", "DATETIME", "TIMESTAMP", ""),
]


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name.lower() == "sqlite"


def _get_existing_columns_sqlite(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    with engine.connect() as conn:
        res = conn.execute(text(f"PRAGMA table_info({table_name});")).fetchall()
        # PRAGMA table_info returns rows: (cid, name, type, notnull, dflt_value, pk)
        for row in res:
            cols[str(row[1])] = str(row[2])
    return cols


def _get_existing_columns_postgres(engine: Engine, table_name: str) -> Dict[str, str]:
    cols: Dict[str, str] = {}
    sql = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_schema = 'public' AND table_name = :table_name;
    """
    with engine.connect() as conn:
        res = conn.execute(text(sql), {"table_name": table_name}).fetchall()
        for row in res:
            cols[str(row[0])] = str(row[1])
    return cols


def _table_exists(engine: Engine, table: str) -> bool:
    if _is_sqlite(engine):
        with engine.connect() as conn:
            result = conn.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' AND name=:table_name"),
                {"table_name": table},
            ).fetchone()
            return bool(result)

    with engine.connect() as conn:
        result = conn.execute(
            text("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public' AND table_name = :table_name
            )
        """),
            {"table_name": table},
        ).fetchone()
        return bool(result and result[0])


def ensure_columns(engine: Engine, table: str, required: List[Tuple[str, str, str, str]]) -> List[str]:
    """
    Idempotently adds required columns to a table if missing.
    Safe to run at every startup. Returns the names of the columns added.
    """
    if not _is_sqlite(engine) and engine.dialect.name.lower() != "postgresql":
        logger.warning(f"Schema patch skipped for unsupported dialect '{engine.dialect.name}'")
        return []
    if not _table_exists(engine, table):
        # Table doesn't exist yet, skip (create_all should create it)
        return []

    added: List[str] = []
    if _is_sqlite(engine):
        existing = _get_existing_columns_sqlite(engine, table)
        with engine.begin() as conn:
            for name, sqlite_type, _pg_type, default in required:
                if name in existing:
                    continue
                # SQLite supports ADD COLUMN without IF NOT EXISTS
                ddl = f"ALTER TABLE {table} ADD COLUMN {name} {sqlite_type}"
                conn.execute(text(f"{ddl} {default};" if default else f"{ddl};"))
                added.append(name)
    else:
        existing = _get_existing_columns_postgres(engine, table)
        with engine.begin() as conn:
            for name, _sqlite_type, pg_type, default in required:
                if name in existing:
                    continue
                ddl = f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {pg_type}"
                conn.execute(text(f"{ddl} {default};" if default else f"{ddl};"))
                added.append(name)

    if added:
        logger.info(f"Added columns to '{table}': {', '.join(added)}")
    return added


def ensure_event_columns(engine: Engine) -> None:
    try:
        from tatame.models.event import Event

        ensure_columns(engine, Event.__table__.name, REQUIRED_EVENT_COLUMNS)
    except Exception as e:
        # Log error but don't crash the server
        logger.warning(f"Failed to ensure event columns (this is OK if table doesn't exist yet): {e}")


def ensure_category_columns(engine: Engine) -> None:
    try:
        from tatame.models.category import Category

        ensure_columns(engine, Category.__table__.name, REQUIRED_CATEGORY_COLUMNS)
    except Exception as e:
        logger.warning(f"Failed to ensure category columns (this is OK if table doesn't exist yet): {e}")
