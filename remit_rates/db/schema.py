"""Database schema DDL definitions and initialization utilities.

Tables:
  - remit_rates: one row per (provider, currency) quote
  - metadata: key/value store (schema version)

The unique index on ``(provider COLLATE NOCASE, currency)`` is what keeps
concurrent creates of the same pair from both succeeding. The ``provider``
column itself keeps BINARY collation so exact-match lookups stay
case-sensitive.
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

REMIT_RATES_DDL = f"""
CREATE TABLE IF NOT EXISTS remit_rates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    provider TEXT NOT NULL,
    rate REAL NOT NULL CHECK (rate > 0),
    currency TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

RATES_PROVIDER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_remit_rates_provider ON remit_rates(provider);"
)
RATES_CURRENCY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_remit_rates_currency ON remit_rates(currency);"
)
RATES_PAIR_UNIQUE_DDL = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_remit_rates_provider_currency
ON remit_rates(provider COLLATE NOCASE, currency);
"""

DDL_ORDER: Sequence[str] = (
    REMIT_RATES_DDL,
    METADATA_DDL,
    RATES_PROVIDER_INDEX_DDL,
    RATES_CURRENCY_INDEX_DDL,
    RATES_PAIR_UNIQUE_DDL,
)


def init_db(path: Path) -> int:
    """Create all tables and indexes idempotently.

    Returns the schema version recorded in the metadata table.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        _set_schema_version(cur, SCHEMA_VERSION)
        conn.commit()
        return SCHEMA_VERSION
    finally:
        conn.close()


def _set_schema_version(cur: sqlite3.Cursor, version: int) -> None:
    cur.execute(
        "INSERT INTO metadata (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
        f"updated_at=({BASIC_UTC_NOW})",
        (SCHEMA_VERSION_KEY, str(version)),
    )
