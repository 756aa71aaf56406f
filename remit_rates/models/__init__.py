"""Pydantic domain models for the remittance rates service."""

from .constants import SUPPORTED_CURRENCIES  # re-export
from .rate import RemitRate, RateCreateIn, RateUpdateIn, RateOut
from .comparison import RateDetail, ComparisonSummary, RateComparison

__all__ = [
    "SUPPORTED_CURRENCIES",
    "RemitRate",
    "RateCreateIn",
    "RateUpdateIn",
    "RateOut",
    "RateDetail",
    "ComparisonSummary",
    "RateComparison",
]
