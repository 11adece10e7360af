from sqlalchemy import Column, Integer, Float, Boolean, JSON, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import ServiceType


class RateCard(BaseModel):
    __tablename__ = "rate_cards"
    __table_args__ = (
        UniqueConstraint("seller_org_id", "service_type", name="uq_rate_card_seller_service"),
    )

    seller_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    seller = relationship("Organization", backref="rate_cards")

    service_type = Column(Enum(ServiceType), nullable=False)
    base_rate_per_ha_cents = Column(Integer, nullable=False)
    min_charge_cents = Column(Integer, nullable=False, default=0)
    travel_fixed_cents = Column(Integer, nullable=False, default=0)
    travel_rate_per_km_cents = Column(Integer, nullable=False, default=0)
    hourly_operator_rate_cents = Column(Integer, nullable=True)

    hilly_terrain_multiplier = Column(Float, nullable=True)
    hilly_terrain_surcharge_cents = Column(Integer, nullable=True)

    seasonal_multipliers = Column(JSON, nullable=False, default=dict)
    risk_multipliers = Column(JSON, nullable=False, default=dict)
    custom_multipliers = Column(JSON, nullable=False, default=dict)
    custom_surcharges = Column(JSON, nullable=False, default=dict)

    is_active = Column(Boolean, nullable=False, default=True)
