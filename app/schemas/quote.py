from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, List
from app.core.enums import ServiceType, TerrainCondition, Season
from app.schemas.fields import MAX_AREA_HA, MAX_DISTANCE_KM, parse_italian_number


class RateCardTerms(BaseModel):
    """The subset of a rate card the quote engine prices with."""
    base_rate_per_ha_cents: int
    min_charge_cents: int = 0
    travel_fixed_cents: int = 0
    travel_rate_per_km_cents: int = 0
    hilly_terrain_multiplier: Optional[float] = None
    hilly_terrain_surcharge_cents: Optional[int] = None
    seasonal_multipliers: Dict[str, object] = Field(default_factory=dict)
    risk_multipliers: Dict[str, object] = Field(default_factory=dict)
    custom_multipliers: Dict[str, object] = Field(default_factory=dict)
    custom_surcharges: Dict[str, object] = Field(default_factory=dict)

    model_config = {"from_attributes": True}

    @field_validator("seasonal_multipliers", "risk_multipliers", "custom_multipliers", "custom_surcharges", mode="before")
    @classmethod
    def plain_keys(cls, value):
        return {str(key): factor for key, factor in (value or {}).items()}


class QuoteJob(BaseModel):
    area_ha: float = Field(gt=0, allow_inf_nan=False)
    distance_km: float = Field(0.0, ge=0, allow_inf_nan=False)
    month: int = Field(ge=1, le=12)
    terrain_conditions: TerrainCondition = TerrainCondition.FLAT
    has_obstacles: bool = False
    risk_key: Optional[str] = None

    @property
    def is_hilly_terrain(self) -> bool:
        return self.terrain_conditions in (TerrainCondition.HILLY, TerrainCondition.MOUNTAINOUS)


class QuoteBreakdown(BaseModel):
    base_cents: int
    season: Season
    seasonal_multiplier: float
    seasonal_adjusted_cents: int
    terrain_multiplier: float
    multiplied_cents: int
    travel_fixed_cents: int
    travel_variable_cents: int
    travel_cents: int
    surcharges_cents: int
    subtotal_cents: int
    min_charge_cents: int
    min_charge_applied: bool
    total_cents: int


class QuoteRequest(BaseModel):
    seller_org_id: int
    service_type: ServiceType
    area_ha: float = Field(gt=0, le=MAX_AREA_HA, allow_inf_nan=False)
    distance_km: float = Field(0.0, ge=0, le=MAX_DISTANCE_KM, allow_inf_nan=False)
    terrain_conditions: TerrainCondition = TerrainCondition.FLAT
    has_obstacles: bool = False
    risk_key: Optional[str] = None
    month: Optional[int] = Field(None, ge=1, le=12)

    @field_validator("area_ha", "distance_km", mode="before")
    @classmethod
    def italian_decimal(cls, value):
        return parse_italian_number(value)


class QuoteResponse(BaseModel):
    currency: str
    total_cents: int
    rate_card_id: int
    breakdown: QuoteBreakdown
    pricing_snapshot: dict


class CertifiedQuotesRequest(BaseModel):
    service_type: ServiceType
    area_ha: float = Field(gt=0, le=MAX_AREA_HA, allow_inf_nan=False)
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    terrain_conditions: TerrainCondition = TerrainCondition.FLAT
    has_obstacles: bool = False
    month: Optional[int] = Field(None, ge=1, le=12)

    @field_validator("area_ha", "location_lat", "location_lng", mode="before")
    @classmethod
    def italian_decimal(cls, value):
        if value is None:
            return value
        return parse_italian_number(value)


class OperatorQuote(BaseModel):
    org_id: int
    org_name: str
    logo_url: Optional[str] = None
    rate_card_id: int
    total_cents: int
    distance_km: float


class CertifiedQuotesResponse(BaseModel):
    quotes: List[OperatorQuote]
