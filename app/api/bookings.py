from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from app.db.session import get_db
from app.models.base import utcnow
from app.models.booking import Booking
from app.models.job import Job
from app.schemas.booking import BookingOut, BookingStats
from app.core.security import get_current_user
from app.core.auth_utils import is_admin, check_party, check_not_found
from app.core.response_builders import build_booking_response, build_booking_response_list
from app.core.enums import BookingStatus

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _scoped(q, current_user):
    if is_admin(current_user):
        return q
    org_id = current_user.organization_id
    return q.where(or_(Booking.buyer_org_id == org_id, Booking.seller_org_id == org_id))


@router.get("/", response_model=List[BookingOut])
async def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = _scoped(select(Booking), current_user)

    if status:
        q = q.where(Booking.status == status)

    q = q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)

    return build_booking_response_list(res.scalars().all())


@router.get("/stats", response_model=BookingStats)
async def booking_stats(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(
        _scoped(select(Booking.status, Booking.executed_end_at, Job.area_ha).join(Job, Booking.job_id == Job.id), current_user)
    )
    rows = res.all()

    now = utcnow()
    completed = [row for row in rows if row.status == BookingStatus.DONE]
    completed_this_month = [
        row for row in completed
        if row.executed_end_at and (row.executed_end_at.year, row.executed_end_at.month) == (now.year, now.month)
    ]

    return BookingStats(
        total_missions=len(rows),
        active_missions=sum(1 for row in rows if row.status == BookingStatus.CONFIRMED),
        completed_this_month=len(completed_this_month),
        total_area_treated=round(sum(row.area_ha or 0.0 for row in completed), 2),
    )


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    res = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = res.scalars().first()
    check_not_found(booking, "Booking", booking_id)
    check_party(current_user, "booking", booking.buyer_org_id, booking.seller_org_id)

    return build_booking_response(booking)
