"""Seeding helpers for demo provider rates.

Provides ``seed_rates`` which ensures a baseline quote exists for each demo
provider in PKR, INR and BDT. Pairs already present are left untouched so
this can be safely re-run; new rows go through the rate service so they are
normalized and validated like any other create.
"""

from __future__ import annotations
import logging
from typing import Mapping, Sequence, Tuple

from .dal import Database
from remit_rates.services.rate_service import RateService
from remit_rates.services.rate_validation import normalize_provider

logger = logging.getLogger("remit_rates.db.seed")

DEMO_PROVIDER_RATES: Sequence[Tuple[str, Mapping[str, float]]] = (
    ("Wise", {"PKR": 280.50, "INR": 83.25, "BDT": 110.50}),
    ("Remitly", {"PKR": 279.75, "INR": 83.00, "BDT": 109.75}),
    ("Western Union", {"PKR": 278.25, "INR": 82.50, "BDT": 108.25}),
    ("MoneyGram", {"PKR": 277.50, "INR": 82.25, "BDT": 107.50}),
    ("Xoom", {"PKR": 279.00, "INR": 82.75, "BDT": 109.00}),
)


def seed_rates(
    db: Database,
    providers: Sequence[Tuple[str, Mapping[str, float]]] = DEMO_PROVIDER_RATES,
) -> int:
    """Insert missing provider/currency quotes; return how many were created."""
    service = RateService(db)
    created = 0
    for name, rates in providers:
        stored_name = normalize_provider(name)
        for currency, rate in rates.items():
            if db.provider_taken(stored_name, currency.upper()):
                continue
            service.create(provider=name, rate=rate, currency=currency)
            created += 1
    logger.info("seeded %d rates for %d providers", created, len(providers))
    return created
