from sqlalchemy import Column, String, Boolean, Float, Enum
from app.models.base import BaseModel
from app.core.enums import OrgType, OrgStatus


class Organization(BaseModel):
    __tablename__ = "organizations"

    legal_name = Column(String(200), nullable=False)
    org_type = Column(Enum(OrgType), nullable=False, default=OrgType.FARM)
    status = Column(Enum(OrgStatus), nullable=False, default=OrgStatus.ACTIVE)
    is_certified = Column(Boolean, default=False, nullable=False)
    logo_url = Column(String(500))
    base_location_lat = Column(Float)
    base_location_lng = Column(Float)
