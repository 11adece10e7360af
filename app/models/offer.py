from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, Enum, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import OfferStatus

ACTIVE_OFFER_PREDICATE = "status IN ('OFFERED', 'AWARDED')"


class JobOffer(BaseModel):
    __tablename__ = "job_offers"
    __table_args__ = (
        # at most one active offer per operator per job
        Index(
            "uq_job_offer_active_operator",
            "job_id",
            "operator_org_id",
            unique=True,
            postgresql_where=text(ACTIVE_OFFER_PREDICATE),
            sqlite_where=text(ACTIVE_OFFER_PREDICATE),
        ),
    )

    job_id = Column(ForeignKey("jobs.id"), nullable=False, index=True)
    operator_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    created_by = Column(ForeignKey("users.id"), nullable=False)

    job = relationship("Job", backref="offers")
    operator = relationship("Organization", backref="job_offers")

    status = Column(Enum(OfferStatus), nullable=False, default=OfferStatus.OFFERED, index=True)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    pricing_snapshot = Column(JSON, nullable=True)
    proposed_start = Column(DateTime(timezone=True), nullable=True)
    proposed_end = Column(DateTime(timezone=True), nullable=True)
    provider_note = Column(String, nullable=True)


class OfferMessage(BaseModel):
    __tablename__ = "offer_messages"

    offer_id = Column(ForeignKey("job_offers.id"), nullable=False, index=True)
    sender_org_id = Column(ForeignKey("organizations.id"), nullable=False)
    sender_user_id = Column(ForeignKey("users.id"), nullable=False)
    sender = relationship("User")

    body = Column(String, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
