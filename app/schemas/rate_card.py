from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict
from datetime import datetime
from app.core.enums import ServiceType, Season


def _check_factors(value: Dict[str, float]) -> Dict[str, float]:
    for key, factor in value.items():
        if factor < 0:
            raise ValueError(f"Multiplier '{key}' must not be negative")
    return value


class RateCardBase(BaseModel):
    base_rate_per_ha_cents: int = Field(gt=0, le=1_000_000)
    min_charge_cents: int = Field(0, ge=0, le=1_000_000)
    travel_fixed_cents: int = Field(0, ge=0, le=1_000_000)
    travel_rate_per_km_cents: int = Field(0, ge=0, le=100_000)
    hourly_operator_rate_cents: Optional[int] = Field(None, ge=0)
    hilly_terrain_multiplier: Optional[float] = Field(None, ge=0)
    hilly_terrain_surcharge_cents: Optional[int] = Field(None, ge=0)
    seasonal_multipliers: Dict[Season, float] = Field(default_factory=dict)
    risk_multipliers: Dict[str, float] = Field(default_factory=dict)
    custom_multipliers: Dict[str, float] = Field(default_factory=dict)
    custom_surcharges: Dict[str, int] = Field(default_factory=dict)
    is_active: bool = True

    @field_validator("seasonal_multipliers", "risk_multipliers", "custom_multipliers")
    @classmethod
    def non_negative_factors(cls, value):
        return _check_factors(value)

    @field_validator("custom_surcharges")
    @classmethod
    def non_negative_surcharges(cls, value):
        for key, cents in value.items():
            if cents < 0:
                raise ValueError(f"Surcharge '{key}' must not be negative")
        return value


class RateCardCreate(RateCardBase):
    service_type: ServiceType
    # admins may create cards on behalf of an operator
    seller_org_id: Optional[int] = None


class RateCardUpdate(BaseModel):
    base_rate_per_ha_cents: Optional[int] = Field(None, gt=0, le=1_000_000)
    min_charge_cents: Optional[int] = Field(None, ge=0, le=1_000_000)
    travel_fixed_cents: Optional[int] = Field(None, ge=0, le=1_000_000)
    travel_rate_per_km_cents: Optional[int] = Field(None, ge=0, le=100_000)
    hourly_operator_rate_cents: Optional[int] = Field(None, ge=0)
    hilly_terrain_multiplier: Optional[float] = Field(None, ge=0)
    hilly_terrain_surcharge_cents: Optional[int] = Field(None, ge=0)
    seasonal_multipliers: Optional[Dict[Season, float]] = None
    risk_multipliers: Optional[Dict[str, float]] = None
    custom_multipliers: Optional[Dict[str, float]] = None
    custom_surcharges: Optional[Dict[str, int]] = None
    is_active: Optional[bool] = None

    @field_validator("seasonal_multipliers", "risk_multipliers", "custom_multipliers")
    @classmethod
    def non_negative_factors(cls, value):
        return _check_factors(value) if value is not None else value


class RateCardOut(RateCardBase):
    id: int
    seller_org_id: int
    service_type: ServiceType
    created_at: datetime
    updated_at: Optional[datetime] = None
