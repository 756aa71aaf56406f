from __future__ import annotations
from typing import List

from pydantic import BaseModel, Field


class RateDetail(BaseModel):
    provider: str
    rate: float
    display: str


class ComparisonSummary(BaseModel):
    total_providers: int = Field(..., description="Number of rates considered")
    average_rate: float = Field(..., description="Mean rate, 4 decimal places")
    median_rate: float = Field(..., description="Median rate, 4 decimal places")


class RateComparison(BaseModel):
    currency: str
    timestamp: str = Field(..., description="ISO-8601 time the summary was computed")
    summary: ComparisonSummary
    best_rate: RateDetail
    worst_rate: RateDetail
    all_rates: List[RateDetail]
