"""Data Access Layer for remittance rates.

Responsibilities
----------------
- Open one short-lived connection per operation; each write is a single
  transaction so a rejected write leaves no trace.
- Expose the rate table through ``RateQuery``, a composable, immutable query
  whose scopes (``by_currency``, ``by_provider``, ``best_rates``, ...) chain
  like filters and only touch the database on a terminal call.
- Leave uniqueness to the store: inserts and updates let
  ``sqlite3.IntegrityError`` propagate for the service layer to translate.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
import sqlite3
from typing import Any, Iterator, List, Optional, Tuple

from remit_rates.models import RemitRate

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
RECENT_WINDOW = "-24 hours"
ACTIVE_WINDOW = "-7 days"


@dataclass(frozen=True)
class RateQuery:
    """Chainable filter/order over ``remit_rates``.

    Every scope returns a new query; nothing runs until ``all()``,
    ``first()``, ``count()`` or ``values()``.
    """

    db: "Database"
    clauses: Tuple[str, ...] = ()
    params: Tuple[Any, ...] = ()
    order_by: Optional[str] = None

    def where(self, clause: str, *params: Any) -> "RateQuery":
        return replace(
            self, clauses=self.clauses + (clause,), params=self.params + params
        )

    # Scopes ---------------------------------------------------------
    def by_currency(self, currency: str) -> "RateQuery":
        return self.where("currency = ?", currency.upper())

    def by_provider(self, provider: str) -> "RateQuery":
        return self.where("provider = ?", provider)

    def best_rates(self) -> "RateQuery":
        return replace(self, order_by="rate DESC, id ASC")

    def recent(self) -> "RateQuery":
        return self.where(
            f"created_at > strftime('%Y-%m-%dT%H:%M:%fZ','now','{RECENT_WINDOW}')"
        )

    def active(self) -> "RateQuery":
        return self.where(
            f"updated_at > strftime('%Y-%m-%dT%H:%M:%fZ','now','{ACTIVE_WINDOW}')"
        )

    # Terminal operations --------------------------------------------
    def _sql(self, select: str, ordered: bool = True) -> str:
        sql = f"SELECT {select} FROM remit_rates"
        if self.clauses:
            sql += " WHERE " + " AND ".join(self.clauses)
        if ordered:
            sql += f" ORDER BY {self.order_by or 'id ASC'}"
        return sql

    def all(self) -> List[RemitRate]:
        with self.db._connect() as conn:
            cur = conn.execute(self._sql("*"), self.params)
            return [RemitRate.from_row(r) for r in cur.fetchall()]

    def first(self) -> Optional[RemitRate]:
        with self.db._connect() as conn:
            cur = conn.execute(self._sql("*") + " LIMIT 1", self.params)
            row = cur.fetchone()
            return RemitRate.from_row(row) if row else None

    def count(self) -> int:
        with self.db._connect() as conn:
            cur = conn.execute(self._sql("COUNT(*)", ordered=False), self.params)
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)

    def values(self) -> List[Decimal]:
        """Return just the rate column, in query order."""
        with self.db._connect() as conn:
            cur = conn.execute(self._sql("rate"), self.params)
            return [
                Decimal(str(r[0])).quantize(Decimal("0.0001")) for r in cur.fetchall()
            ]

    def exists(self) -> bool:
        return self.count() > 0

    def __iter__(self) -> Iterator[RemitRate]:
        return iter(self.all())


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        finally:
            conn.close()

    def ping(self) -> bool:
        with self._connect() as conn:
            return conn.execute("SELECT 1").fetchone()[0] == 1

    # ------------------------------------------------------------------
    # Queries
    def rates(self) -> RateQuery:
        return RateQuery(self)

    def get_rate(self, rate_id: int) -> Optional[RemitRate]:
        return self.rates().where("id = ?", rate_id).first()

    def provider_taken(
        self, provider: str, currency: str, exclude_id: Optional[int] = None
    ) -> bool:
        """True when another row already quotes ``currency`` for ``provider``.

        The provider comparison ignores case, matching the unique index.
        """
        query = self.rates().where("provider = ? COLLATE NOCASE", provider)
        query = query.where("currency = ?", currency)
        if exclude_id is not None:
            query = query.where("id != ?", exclude_id)
        return query.exists()

    # ------------------------------------------------------------------
    # Writes
    def insert_rate(self, provider: str, rate: Decimal, currency: str) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO remit_rates (provider, rate, currency, created_at, updated_at)
                VALUES (?, ?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (provider, float(rate), currency),
            )
            return int(cur.lastrowid)

    def update_rate(
        self, rate_id: int, provider: str, rate: Decimal, currency: str
    ) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                f"""
                UPDATE remit_rates
                SET provider = ?, rate = ?, currency = ?, updated_at = ({UTC_NOW_SQL})
                WHERE id = ?
                """,
                (provider, float(rate), currency, rate_id),
            )
            return cur.rowcount > 0

    def delete_rate(self, rate_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM remit_rates WHERE id = ?", (rate_id,))
            return cur.rowcount > 0
