from typing import Iterable, List

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from remit_rates.models.constants import SUPPORTED_CURRENCIES

logger = logging.getLogger("remit_rates.errors")


class RateValidationError(ValueError):
    """A create or update broke one or more rate rules.

    ``errors`` holds every violated rule as a full message, in rule order.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


class RateNotFoundError(LookupError):
    def __init__(self, rate_id: int):
        self.rate_id = rate_id
        super().__init__(f"Rate {rate_id} not found")


class UnsupportedCurrencyError(ValueError):
    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Currency {currency} is not supported")


_HTTP_ERROR_SLUGS = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    detail = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        detail = f"No route for {request.method} {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": _HTTP_ERROR_SLUGS.get(exc.status_code, "http_error"),
            "detail": detail,
        },
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "invalid_parameters",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def rate_validation_handler(request: Request, exc: RateValidationError):  # type: ignore
    return JSONResponse(
        status_code=422,
        content={"error": "validation_failed", "detail": exc.errors},
    )


def rate_not_found_handler(request: Request, exc: RateNotFoundError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "not_found", "detail": str(exc)},
    )


def unsupported_currency_handler(request: Request, exc: UnsupportedCurrencyError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "invalid_currency",
            "detail": str(exc),
            "supported": list(SUPPORTED_CURRENCIES),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.error("API Error: %s", exc, exc_info=exc)
    content = {
        "error": "internal_error",
        "detail": "An unexpected error occurred.",
    }
    if getattr(request.app.state, "expose_errors", False):
        content["detail"] = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
