from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.core.enums import ServiceType, BookingStatus, PaymentStatus


class BookingOut(BaseModel):
    id: int
    job_id: int
    accepted_offer_id: int
    buyer_org_id: int
    seller_org_id: int
    executor_org_id: int
    service_type: ServiceType
    total_cents: int
    site_snapshot: Optional[dict] = None
    status: BookingStatus
    payment_status: PaymentStatus
    executed_end_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class AcceptOfferOut(BaseModel):
    message: str
    job_id: int
    offer_id: int
    booking: BookingOut


class BookingStats(BaseModel):
    total_missions: int
    active_missions: int
    completed_this_month: int
    total_area_treated: float
