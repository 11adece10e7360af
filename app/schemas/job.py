from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Any
from datetime import datetime, date
from app.core.enums import ServiceType, CropType, TreatmentType, TerrainCondition, JobStatus
from app.schemas.fields import MAX_AREA_HA, parse_italian_number


class JobCreate(BaseModel):
    field_name: str = Field(min_length=1)
    service_type: ServiceType
    area_ha: float = Field(gt=0, le=MAX_AREA_HA, allow_inf_nan=False)
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    field_polygon: Optional[Any] = None
    crop_type: Optional[CropType] = None
    treatment_type: Optional[TreatmentType] = None
    terrain_conditions: TerrainCondition = TerrainCondition.FLAT
    has_obstacles: bool = False
    target_date_start: Optional[date] = None
    target_date_end: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("area_ha", mode="before")
    @classmethod
    def italian_decimal(cls, value):
        return parse_italian_number(value)

    @model_validator(mode="after")
    def window_in_order(self):
        if self.target_date_start and self.target_date_end and self.target_date_end < self.target_date_start:
            raise ValueError("target_date_end must not be before target_date_start")
        return self


class JobOut(BaseModel):
    id: int
    buyer_org_id: int
    created_by: int
    service_type: ServiceType
    crop_type: Optional[CropType] = None
    treatment_type: Optional[TreatmentType] = None
    terrain_conditions: TerrainCondition
    has_obstacles: bool
    field_name: str
    field_polygon: Optional[Any] = None
    area_ha: float
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    target_date_start: Optional[date] = None
    target_date_end: Optional[date] = None
    notes: Optional[str] = None
    status: JobStatus
    accepted_offer_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
