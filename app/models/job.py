from sqlalchemy import Column, String, Float, Boolean, Date, JSON, Enum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import ServiceType, CropType, TreatmentType, TerrainCondition, JobStatus


class Job(BaseModel):
    __tablename__ = "jobs"

    buyer_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    created_by = Column(ForeignKey("users.id"), nullable=False)
    buyer = relationship("Organization", backref="jobs")

    service_type = Column(Enum(ServiceType), nullable=False)
    crop_type = Column(Enum(CropType), nullable=True)
    treatment_type = Column(Enum(TreatmentType), nullable=True)
    terrain_conditions = Column(Enum(TerrainCondition), nullable=False, default=TerrainCondition.FLAT)
    has_obstacles = Column(Boolean, nullable=False, default=False)

    field_name = Column(String(200), nullable=False)
    field_polygon = Column(JSON, nullable=True)
    area_ha = Column(Float, nullable=False)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)

    target_date_start = Column(Date, nullable=True)
    target_date_end = Column(Date, nullable=True)
    notes = Column(String, nullable=True)

    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.OPEN, index=True)
    # no FK: job_offers already references jobs
    accepted_offer_id = Column(Integer, nullable=True)

    @property
    def is_hilly(self) -> bool:
        return self.terrain_conditions in (TerrainCondition.HILLY, TerrainCondition.MOUNTAINOUS)
