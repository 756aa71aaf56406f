"""Rate record service: CRUD with the record invariants enforced.

Every create and update runs the same pipeline:

1. normalize (provider trimmed + title-cased, currency uppercased)
2. validate all rules, collecting every failure
3. round the rate to 4 decimal places
4. one atomic write

Routers depend on this service rather than on the DAL directly so the
pipeline cannot be skipped.
"""

from __future__ import annotations
import logging
import sqlite3
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from remit_rates.core.errors import RateNotFoundError, RateValidationError
from remit_rates.db.dal import Database, RateQuery
from remit_rates.models import RemitRate
from remit_rates.services.money import average
from remit_rates.services.rate_validation import (
    DUPLICATE_PAIR_MESSAGE,
    RateFields,
    collect_rate_errors,
    normalize_rate_fields,
    rounded_rate,
)

logger = logging.getLogger("remit_rates.services.rates")

UPDATABLE_FIELDS = ("provider", "rate", "currency")


class RateService:
    def __init__(self, db: Database):
        self.db = db

    # Queries ---------------------------------------------------------
    def rates(self) -> RateQuery:
        return self.db.rates()

    def list_rates(
        self, currency: Optional[str] = None, provider: Optional[str] = None
    ) -> List[RemitRate]:
        query = self.db.rates()
        if currency:
            query = query.by_currency(currency)
        if provider:
            query = query.by_provider(provider)
        return query.best_rates().all()

    def get(self, rate_id: int) -> RemitRate:
        record = self.db.get_rate(rate_id)
        if record is None:
            raise RateNotFoundError(rate_id)
        return record

    def best_rate_for(self, currency: str) -> Optional[RemitRate]:
        return self.db.rates().by_currency(currency).best_rates().first()

    def average_rate_for(self, currency: str) -> Optional[Decimal]:
        values = self.db.rates().by_currency(currency).values()
        return average(values) if values else None

    # Writes ----------------------------------------------------------
    def _prepare(
        self, fields: RateFields, exclude_id: Optional[int] = None
    ) -> RateFields:
        normalized = normalize_rate_fields(fields)
        errors = collect_rate_errors(normalized, self.db, exclude_id=exclude_id)
        if errors:
            logger.warning("rate rejected: %s", "; ".join(errors))
            raise RateValidationError(errors)
        return RateFields(
            provider=normalized.provider,
            rate=rounded_rate(normalized),
            currency=normalized.currency,
        )

    def create(self, provider: Optional[str], rate: Any, currency: Optional[str]) -> RemitRate:
        prepared = self._prepare(RateFields(provider=provider, rate=rate, currency=currency))
        try:
            rate_id = self.db.insert_rate(
                prepared.provider, prepared.rate, prepared.currency  # type: ignore[arg-type]
            )
        except sqlite3.IntegrityError as e:
            if not _is_unique_violation(e):
                raise
            logger.warning("rate rejected by unique index: %s", e)
            raise RateValidationError([DUPLICATE_PAIR_MESSAGE]) from e
        logger.info(
            "rate created id=%s provider=%s currency=%s rate=%s",
            rate_id,
            prepared.provider,
            prepared.currency,
            prepared.rate,
        )
        return self.get(rate_id)

    def update(self, rate_id: int, changes: Mapping[str, Any]) -> RemitRate:
        """Replace only the fields present in ``changes``."""
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
        current = self.get(rate_id)
        if not changes:
            return current
        merged = RateFields(
            provider=changes.get("provider", current.provider),
            rate=changes.get("rate", current.rate),
            currency=changes.get("currency", current.currency),
        )
        prepared = self._prepare(merged, exclude_id=rate_id)
        try:
            updated = self.db.update_rate(
                rate_id, prepared.provider, prepared.rate, prepared.currency  # type: ignore[arg-type]
            )
        except sqlite3.IntegrityError as e:
            if not _is_unique_violation(e):
                raise
            logger.warning("rate rejected by unique index: %s", e)
            raise RateValidationError([DUPLICATE_PAIR_MESSAGE]) from e
        if not updated:
            raise RateNotFoundError(rate_id)
        logger.info("rate updated id=%s fields=%s", rate_id, sorted(changes))
        return self.get(rate_id)

    def delete(self, rate_id: int) -> None:
        if not self.db.delete_rate(rate_id):
            raise RateNotFoundError(rate_id)
        logger.info("rate deleted id=%s", rate_id)


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(exc).upper()
