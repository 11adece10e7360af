from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from datetime import datetime
from app.schemas.fields import MAX_AREA_HA, parse_italian_number


class SavedFieldCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    # [lat, lng] vertices
    polygon: List[List[float]] = Field(min_length=3)
    area_ha: float = Field(gt=0, le=MAX_AREA_HA, allow_inf_nan=False)
    location_json: Optional[Any] = None

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: str):
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()

    @field_validator("polygon")
    @classmethod
    def points_are_coordinates(cls, value):
        for point in value:
            if len(point) != 2:
                raise ValueError("each polygon point must be [lat, lng]")
            lat, lng = point
            if not (-90 <= lat <= 90 and -180 <= lng <= 180):
                raise ValueError(f"point out of range: {point}")
        return value

    @field_validator("area_ha", mode="before")
    @classmethod
    def italian_decimal(cls, value):
        return parse_italian_number(value)


class SavedFieldOut(BaseModel):
    id: int
    organization_id: int
    name: str
    polygon: List[List[float]]
    area_ha: float
    location_json: Optional[Any] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
