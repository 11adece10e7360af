from sqlalchemy import Column, String, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel


class SavedField(BaseModel):
    __tablename__ = "saved_fields"

    organization_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    organization = relationship("Organization", backref="saved_fields")

    name = Column(String(255), nullable=False)
    polygon = Column(JSON, nullable=False)
    area_ha = Column(Float, nullable=False)
    location_json = Column(JSON, nullable=True)
