"""Cross-provider comparison for a single currency.

``RatesComparisonService.compare`` pulls every rate for the currency in
``best_rates()`` order and summarizes it. A currency with no rates is an
ordinary outcome, so the result is a tagged value rather than an exception:
check ``result.success`` before reading ``result.data``.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from remit_rates.db.dal import Database
from remit_rates.models import (
    ComparisonSummary,
    RateComparison,
    RateDetail,
    RemitRate,
)
from remit_rates.services.money import average, median

logger = logging.getLogger("remit_rates.services.comparison")


@dataclass(frozen=True)
class ComparisonFound:
    data: RateComparison
    success: bool = field(default=True, init=False)
    error: Optional[str] = field(default=None, init=False)


@dataclass(frozen=True)
class ComparisonNotFound:
    error: str
    success: bool = field(default=False, init=False)
    data: Optional[RateComparison] = field(default=None, init=False)


ComparisonResult = Union[ComparisonFound, ComparisonNotFound]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def rate_details(record: RemitRate) -> RateDetail:
    return RateDetail(
        provider=record.provider,
        rate=float(record.rate),
        display=record.rate_display,
    )


class RatesComparisonService:
    def __init__(self, db: Database, clock: Callable[[], datetime] = _utc_now):
        self.db = db
        self._clock = clock

    def compare(self, currency: str) -> ComparisonResult:
        currency = currency.upper()
        rates = self.db.rates().by_currency(currency).best_rates().all()
        if not rates:
            logger.info("comparison requested for %s with no rates", currency)
            return ComparisonNotFound(error=f"No rates found for {currency}")
        return ComparisonFound(data=self._build(currency, rates))

    def _build(self, currency: str, rates: List[RemitRate]) -> RateComparison:
        values = [r.rate for r in rates]
        return RateComparison(
            currency=currency,
            timestamp=self._clock().isoformat(timespec="seconds"),
            summary=ComparisonSummary(
                total_providers=len(rates),
                average_rate=float(average(values)),
                median_rate=float(median(values)),
            ),
            best_rate=rate_details(rates[0]),
            worst_rate=rate_details(rates[-1]),
            all_rates=[rate_details(r) for r in rates],
        )
