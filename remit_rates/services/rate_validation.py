"""Normalization and rule checks for rate records.

Order matters and is fixed: ``normalize_rate_fields`` runs first (trim and
title-case the provider, uppercase the currency), then
``collect_rate_errors`` checks every rule against the normalized values, and
only an accepted record is rounded to 4 places by the caller. Checking
uniqueness on normalized values is what makes ``"wise"`` collide with a
stored ``"Wise"``.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from string import capwords
from typing import TYPE_CHECKING, Any, List, Optional

from remit_rates.core.errors import UnsupportedCurrencyError
from remit_rates.models.constants import (
    PROVIDER_MAX_LENGTH,
    PROVIDER_MIN_LENGTH,
    RATE_MAX,
    SUPPORTED_CURRENCY_SET,
)
from remit_rates.services.money import round4, to_decimal

if TYPE_CHECKING:  # pragma: no cover
    from remit_rates.db.dal import Database

DUPLICATE_PAIR_MESSAGE = "Provider already has a rate for this currency"


@dataclass(frozen=True)
class RateFields:
    """Candidate values for a create or update, before and after normalizing."""

    provider: Optional[str]
    rate: Any
    currency: Optional[str]


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def normalize_provider(provider: str) -> str:
    return capwords(provider.strip())


def normalize_currency(currency: str) -> str:
    return currency.strip().upper()


def normalize_rate_fields(fields: RateFields) -> RateFields:
    provider = fields.provider
    currency = fields.currency
    if _present(provider):
        provider = normalize_provider(provider)  # type: ignore[arg-type]
    if _present(currency):
        currency = normalize_currency(currency)  # type: ignore[arg-type]
    return replace(fields, provider=provider, currency=currency)


def _rate_errors(raw: Any) -> List[str]:
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return ["Rate can't be blank"]
    try:
        value = to_decimal(raw)
    except ValueError:
        return ["Rate is not a number"]
    if value <= 0:
        return ["Rate must be greater than 0"]
    if value > RATE_MAX:
        return [f"Rate is too large (maximum is {RATE_MAX})"]
    if round4(value) <= 0:
        return ["Rate must be at least 0.0001 once rounded to 4 decimal places"]
    return []


def collect_rate_errors(
    fields: RateFields, db: "Database", exclude_id: Optional[int] = None
) -> List[str]:
    """Return every violated rule for already-normalized ``fields``."""
    errors: List[str] = []
    provider, currency = fields.provider, fields.currency

    if not _present(provider):
        errors.append("Provider can't be blank")
    elif len(provider) < PROVIDER_MIN_LENGTH:  # type: ignore[arg-type]
        errors.append(
            f"Provider is too short (minimum is {PROVIDER_MIN_LENGTH} characters)"
        )
    elif len(provider) > PROVIDER_MAX_LENGTH:  # type: ignore[arg-type]
        errors.append(
            f"Provider is too long (maximum is {PROVIDER_MAX_LENGTH} characters)"
        )

    errors.extend(_rate_errors(fields.rate))

    if not _present(currency):
        errors.append("Currency can't be blank")
    elif currency not in SUPPORTED_CURRENCY_SET:
        errors.append(f"Currency {currency} is not a supported currency")

    if _present(provider) and _present(currency):
        if db.provider_taken(provider, currency, exclude_id=exclude_id):  # type: ignore[arg-type]
            errors.append(DUPLICATE_PAIR_MESSAGE)
    return errors


def rounded_rate(fields: RateFields) -> Decimal:
    return round4(fields.rate)


def ensure_supported_currency(currency: str) -> str:
    """Uppercase ``currency`` and reject codes outside the supported set."""
    code = normalize_currency(currency)
    if code not in SUPPORTED_CURRENCY_SET:
        raise UnsupportedCurrencyError(code)
    return code
