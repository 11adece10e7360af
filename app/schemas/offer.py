from pydantic import BaseModel, Field, field_validator
from typing import Optional, Union
from datetime import datetime
from app.core.enums import OfferStatus
from app.schemas.fields import euros_to_cents


class OfferCreate(BaseModel):
    # omitted: priced from the operator's own rate card
    total_cents: Optional[int] = None
    currency: str = Field("EUR", min_length=3, max_length=3)
    proposed_start: Optional[datetime] = None
    proposed_end: Optional[datetime] = None
    provider_note: Optional[str] = None
    pricing_snapshot: Optional[dict] = None

    @field_validator("total_cents", mode="before")
    @classmethod
    def amount_in_cents(cls, value: Optional[Union[str, int]]):
        if value is None:
            return value
        cents = euros_to_cents(value)
        if cents <= 0:
            raise ValueError("total_cents must be positive")
        return cents


class OfferUpdate(BaseModel):
    total_cents: int
    currency: str = Field("EUR", min_length=3, max_length=3)
    proposed_start: Optional[datetime] = None
    proposed_end: Optional[datetime] = None
    provider_note: Optional[str] = None
    pricing_snapshot: Optional[dict] = None

    @field_validator("total_cents", mode="before")
    @classmethod
    def amount_in_cents(cls, value: Union[str, int]):
        cents = euros_to_cents(value)
        if cents <= 0:
            raise ValueError("total_cents must be positive")
        return cents


class OfferOut(BaseModel):
    id: int
    job_id: int
    operator_org_id: int
    created_by: int
    status: OfferStatus
    total_cents: int
    currency: str
    pricing_snapshot: Optional[dict] = None
    proposed_start: Optional[datetime] = None
    proposed_end: Optional[datetime] = None
    provider_note: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
