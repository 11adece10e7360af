from sqlalchemy import Column, Integer, DateTime, JSON, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import ServiceType, BookingStatus, PaymentStatus


class Booking(BaseModel):
    __tablename__ = "bookings"

    # one booking per job
    job_id = Column(ForeignKey("jobs.id"), nullable=False, unique=True)
    accepted_offer_id = Column(ForeignKey("job_offers.id"), nullable=False)
    buyer_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    seller_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    executor_org_id = Column(ForeignKey("organizations.id"), nullable=False)

    job = relationship("Job", backref="booking")

    service_type = Column(Enum(ServiceType), nullable=False)
    total_cents = Column(Integer, nullable=False)
    site_snapshot = Column(JSON, nullable=True)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    executed_end_at = Column(DateTime(timezone=True), nullable=True)
