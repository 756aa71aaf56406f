from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from remit_rates.db.dal import Database
from remit_rates.models import (
    RateComparison,
    RateCreateIn,
    RateOut,
    RateUpdateIn,
)
from remit_rates.services.comparison import RatesComparisonService
from remit_rates.services.rate_service import RateService
from remit_rates.services.rate_validation import ensure_supported_currency

"""Rates router: CRUD over provider quotes plus per-currency comparison.

Endpoints (mounted under settings.api_prefix, default /api/v1):
    - GET    /rates                    -> list, optional currency/provider filters, best first
    - GET    /rates/{id}               -> one rate
    - POST   /rates                    -> create {provider, rate, currency}
    - PUT    /rates/{id}               -> partial update
    - DELETE /rates/{id}               -> delete
    - GET    /rates/compare/{currency} -> comparison summary

Domain errors (RateValidationError, RateNotFoundError, UnsupportedCurrencyError)
are mapped to responses by the handlers registered in main.create_app.
"""

router = APIRouter(prefix="/rates", tags=["rates"])


# Dependencies -----------------------------------------------------


def get_db(request: Request) -> Database:
    return Database(request.app.state.settings.db_path)


def get_rate_service(db: Database = Depends(get_db)) -> RateService:
    return RateService(db)


def get_comparison_service(db: Database = Depends(get_db)) -> RatesComparisonService:
    return RatesComparisonService(db)


# Routes -----------------------------------------------------------
@router.get("", response_model=List[RateOut], summary="Get all rates")
def list_rates(
    currency: Optional[str] = Query(None, description="Filter by currency"),
    provider: Optional[str] = Query(None, description="Filter by provider"),
    service: RateService = Depends(get_rate_service),
):
    if currency:
        currency = ensure_supported_currency(currency)
    records = service.list_rates(currency=currency, provider=provider)
    return [RateOut.from_record(r) for r in records]


@router.get(
    "/compare/{currency}",
    response_model=RateComparison,
    summary="Compare rates for a specific currency",
    responses={404: {"description": "No rates found for the currency"}},
)
def compare_rates(
    currency: str,
    service: RatesComparisonService = Depends(get_comparison_service),
):
    result = service.compare(ensure_supported_currency(currency))
    if not result.success:
        return JSONResponse(
            status_code=404, content={"error": "no_rates", "detail": result.error}
        )
    return result.data


@router.get("/{rate_id}", response_model=RateOut, summary="Get a specific rate")
def get_rate(rate_id: int, service: RateService = Depends(get_rate_service)):
    return RateOut.from_record(service.get(rate_id))


@router.post("", response_model=RateOut, status_code=201, summary="Create a new rate")
def create_rate(payload: RateCreateIn, service: RateService = Depends(get_rate_service)):
    record = service.create(
        provider=payload.provider, rate=payload.rate, currency=payload.currency
    )
    return RateOut.from_record(record)


@router.put("/{rate_id}", response_model=RateOut, summary="Update a rate")
def update_rate(
    rate_id: int,
    payload: RateUpdateIn,
    service: RateService = Depends(get_rate_service),
):
    return RateOut.from_record(service.update(rate_id, payload.changes()))


@router.delete("/{rate_id}", summary="Delete a rate")
def delete_rate(rate_id: int, service: RateService = Depends(get_rate_service)):
    service.delete(rate_id)
    return {"message": "Rate deleted successfully"}
