from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import SUPPORTED_CURRENCY_SET


class RemitRate(BaseModel):
    """One provider's quoted rate for one currency, as stored."""

    model_config = ConfigDict(frozen=True)

    id: int
    provider: str
    rate: Decimal
    currency: str
    created_at: datetime
    updated_at: datetime

    @property
    def rate_display(self) -> str:
        return f"{self.rate:.4f} {self.currency}"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RemitRate":
        return cls(
            id=row["id"],
            provider=row["provider"],
            rate=Decimal(str(row["rate"])).quantize(Decimal("0.0001")),
            currency=row["currency"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class RateCreateIn(BaseModel):
    provider: str = Field(
        ...,
        pattern=r"^[a-zA-Z\s]+$",
        description="Provider name",
        examples=["Wise"],
    )
    rate: float = Field(..., gt=0, description="Exchange rate", examples=[280.50])
    currency: str = Field(..., description="Target currency", examples=["PKR"])

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        if v.strip().upper() not in SUPPORTED_CURRENCY_SET:
            raise ValueError("unsupported currency")
        return v


class RateUpdateIn(BaseModel):
    """Partial update; omitted fields keep their stored value.

    Field rules are left to the rate service so an update reports every
    broken rule the same way a create does.
    """

    provider: Optional[str] = Field(None, description="Provider name")
    rate: Optional[float] = Field(None, description="Exchange rate")
    currency: Optional[str] = Field(None, description="Target currency")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class RateOut(BaseModel):
    id: int = Field(..., description="Rate ID")
    provider: str = Field(..., description="Provider name")
    rate: float = Field(..., description="Exchange rate")
    currency: str = Field(..., description="Target currency")
    rate_display: str = Field(..., description="Formatted rate display")
    rate_formatted: str = Field(..., description="Alias of rate_display")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_record(cls, record: RemitRate) -> "RateOut":
        return cls(
            id=record.id,
            provider=record.provider,
            rate=float(record.rate),
            currency=record.currency,
            rate_display=record.rate_display,
            rate_formatted=record.rate_display,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

