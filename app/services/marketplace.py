"""Job, offer and booking lifecycle."""
import logging
from datetime import date
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.auth_utils import check_not_found, check_org_member, check_party, is_admin, require_organization
from app.core.enums import BookingStatus, JobStatus, OfferStatus, UserRole
from app.core.metrics import bookings_created, job_transitions, offer_transitions
from app.models.base import utcnow
from app.models.booking import Booking
from app.models.job import Job
from app.models.offer import JobOffer
from app.models.organization import Organization
from app.schemas.job import JobCreate
from app.schemas.offer import OfferCreate, OfferUpdate
from app.services.quoting import price_job_for_operator

logger = logging.getLogger(__name__)

ACTIVE_OFFER_STATUSES = (OfferStatus.OFFERED, OfferStatus.AWARDED)


async def get_job(db: AsyncSession, job_id: int) -> Job:
    res = await db.execute(select(Job).where(Job.id == job_id))
    job = res.scalars().first()
    check_not_found(job, "Job", job_id)
    return job


async def get_offer(db: AsyncSession, offer_id: int, job_id: Optional[int] = None) -> JobOffer:
    q = select(JobOffer).where(JobOffer.id == offer_id)
    if job_id is not None:
        q = q.where(JobOffer.job_id == job_id)
    res = await db.execute(q)
    offer = res.scalars().first()
    check_not_found(offer, "Offer", offer_id)
    return offer


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=409, detail=detail)


async def _decline_open_offers(db: AsyncSession, job_id: int, keep_offer_id: Optional[int] = None) -> int:
    q = update(JobOffer).where(JobOffer.job_id == job_id, JobOffer.status == OfferStatus.OFFERED)
    if keep_offer_id is not None:
        q = q.where(JobOffer.id != keep_offer_id)
    result = await db.execute(
        q.values(status=OfferStatus.DECLINED, updated_at=utcnow()).execution_options(synchronize_session=False)
    )
    if result.rowcount:
        offer_transitions.labels(to_status=str(OfferStatus.DECLINED)).inc(result.rowcount)
    return result.rowcount


def can_view_job(job: Job, current_user, has_offered: bool = False) -> bool:
    if is_admin(current_user) or job.buyer_org_id == current_user.organization_id:
        return True
    if current_user.role == UserRole.OPERATOR:
        return job.status == JobStatus.OPEN or has_offered
    return False


async def create_job(db: AsyncSession, payload: JobCreate, current_user) -> Job:
    buyer_org_id = require_organization(current_user)
    job = Job(
        buyer_org_id=buyer_org_id,
        created_by=int(current_user.id),
        status=JobStatus.OPEN,
        **payload.model_dump(),
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    job_transitions.labels(to_status=str(JobStatus.OPEN)).inc()
    logger.info(f"Job {job.id} posted by org {buyer_org_id}")
    return job


async def submit_offer(db: AsyncSession, job_id: int, payload: OfferCreate, current_user) -> JobOffer:
    operator_org_id = require_organization(current_user)
    job = await get_job(db, job_id)

    if job.status != JobStatus.OPEN:
        raise _conflict(f"Job {job_id} is {job.status}; offers are closed")
    if job.buyer_org_id == operator_org_id:
        raise HTTPException(status_code=400, detail="Cannot make an offer on your own job")

    res = await db.execute(
        select(JobOffer.id).where(
            JobOffer.job_id == job_id,
            JobOffer.operator_org_id == operator_org_id,
            JobOffer.status.in_(ACTIVE_OFFER_STATUSES),
        )
    )
    if res.scalars().first() is not None:
        raise _conflict("Your organization already has an active offer on this job")

    total_cents = payload.total_cents
    pricing_snapshot = payload.pricing_snapshot
    if total_cents is None:
        operator_org = await db.get(Organization, operator_org_id)
        total_cents, pricing_snapshot = await price_job_for_operator(db, job, operator_org)

    offer = JobOffer(
        job_id=job_id,
        operator_org_id=operator_org_id,
        created_by=int(current_user.id),
        status=OfferStatus.OFFERED,
        total_cents=total_cents,
        currency=payload.currency,
        pricing_snapshot=pricing_snapshot,
        proposed_start=payload.proposed_start,
        proposed_end=payload.proposed_end,
        provider_note=payload.provider_note,
    )
    db.add(offer)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _conflict("Your organization already has an active offer on this job")
    await db.refresh(offer)

    offer_transitions.labels(to_status=str(OfferStatus.OFFERED)).inc()
    logger.info(f"Offer {offer.id} on job {job_id} from org {operator_org_id}: {total_cents} cents")
    return offer


async def _owned_open_offer(db: AsyncSession, job_id: int, offer_id: int, current_user) -> JobOffer:
    offer = await get_offer(db, offer_id, job_id)
    check_org_member(offer.operator_org_id, current_user, "offer")
    if offer.status != OfferStatus.OFFERED:
        raise _conflict(f"Offer {offer_id} is {offer.status}; only OFFERED offers can change")
    return offer


async def update_offer(db: AsyncSession, job_id: int, offer_id: int, payload: OfferUpdate, current_user) -> JobOffer:
    offer = await _owned_open_offer(db, job_id, offer_id, current_user)

    data = payload.model_dump(exclude_unset=True)
    # repricing without a new breakdown drops the old one
    if data["total_cents"] != offer.total_cents and data.get("pricing_snapshot") is None:
        data["pricing_snapshot"] = None
    for field, value in data.items():
        setattr(offer, field, value)
    db.add(offer)
    await db.commit()
    await db.refresh(offer)
    return offer


async def withdraw_offer(db: AsyncSession, job_id: int, offer_id: int, current_user) -> JobOffer:
    offer = await _owned_open_offer(db, job_id, offer_id, current_user)

    offer.status = OfferStatus.WITHDRAWN
    db.add(offer)
    await db.commit()
    await db.refresh(offer)

    offer_transitions.labels(to_status=str(OfferStatus.WITHDRAWN)).inc()
    logger.info(f"Offer {offer_id} on job {job_id} withdrawn")
    return offer


def _site_snapshot(job: Job) -> dict:
    return {
        "field_name": job.field_name,
        "area_ha": job.area_ha,
        "location_lat": job.location_lat,
        "location_lng": job.location_lng,
        "field_polygon": job.field_polygon,
        "crop_type": str(job.crop_type) if job.crop_type else None,
        "treatment_type": str(job.treatment_type) if job.treatment_type else None,
        "terrain_conditions": str(job.terrain_conditions),
        "has_obstacles": job.has_obstacles,
        "target_date_start": job.target_date_start.isoformat() if job.target_date_start else None,
        "target_date_end": job.target_date_end.isoformat() if job.target_date_end else None,
        "notes": job.notes,
    }


async def accept_offer(db: AsyncSession, job_id: int, offer_id: int, current_user) -> Booking:
    """Award one offer, decline the rest and book the job in a single transaction.

    The job only moves out of OPEN through a conditional update, so of two
    concurrent accepts exactly one sees a matched row; the other gets 409.
    """
    job = await get_job(db, job_id)
    check_org_member(job.buyer_org_id, current_user, "job")
    offer = await get_offer(db, offer_id, job_id)

    if job.status != JobStatus.OPEN:
        raise _conflict(f"Job {job_id} is {job.status}; it can no longer be awarded")
    if offer.status != OfferStatus.OFFERED:
        raise _conflict(f"Offer {offer_id} is {offer.status}; only OFFERED offers can be accepted")

    now = utcnow()
    try:
        result = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.OPEN)
            .values(status=JobStatus.AWARDED, accepted_offer_id=offer_id, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _conflict(f"Job {job_id} was awarded concurrently")

        result = await db.execute(
            update(JobOffer)
            .where(JobOffer.id == offer_id, JobOffer.status == OfferStatus.OFFERED)
            .values(status=OfferStatus.AWARDED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _conflict(f"Offer {offer_id} changed concurrently")

        declined = await _decline_open_offers(db, job_id, keep_offer_id=offer_id)

        booking = Booking(
            job_id=job_id,
            accepted_offer_id=offer_id,
            buyer_org_id=job.buyer_org_id,
            seller_org_id=offer.operator_org_id,
            executor_org_id=offer.operator_org_id,
            service_type=job.service_type,
            total_cents=offer.total_cents,
            site_snapshot=_site_snapshot(job),
            status=BookingStatus.CONFIRMED,
        )
        db.add(booking)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise _conflict(f"Job {job_id} already has a booking")
    except Exception:
        await db.rollback()
        raise

    await db.refresh(booking)
    await db.refresh(job)
    await db.refresh(offer)

    job_transitions.labels(to_status=str(JobStatus.AWARDED)).inc()
    offer_transitions.labels(to_status=str(OfferStatus.AWARDED)).inc()
    bookings_created.inc()
    logger.info(f"Offer {offer_id} accepted on job {job_id}; booking {booking.id} created, {declined} offers declined")
    return booking


async def cancel_job(db: AsyncSession, job_id: int, current_user) -> Job:
    job = await get_job(db, job_id)
    check_org_member(job.buyer_org_id, current_user, "job")

    try:
        result = await db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.OPEN)
            .values(status=JobStatus.CANCELLED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _conflict(f"Job {job_id} is {job.status}; only OPEN jobs can be cancelled")
        await _decline_open_offers(db, job_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(job)
    job_transitions.labels(to_status=str(JobStatus.CANCELLED)).inc()
    logger.info(f"Job {job_id} cancelled")
    return job


async def expire_stale_jobs(db: AsyncSession, today: Optional[date] = None) -> List[int]:
    """Expire OPEN jobs whose target window ended before `today`. Returns their ids."""
    today = today or utcnow().date()
    res = await db.execute(
        select(Job.id).where(Job.status == JobStatus.OPEN, Job.target_date_end < today)
    )
    candidates = list(res.scalars().all())

    expired = []
    try:
        for job_id in candidates:
            result = await db.execute(
                update(Job)
                .where(Job.id == job_id, Job.status == JobStatus.OPEN)
                .values(status=JobStatus.EXPIRED, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await _decline_open_offers(db, job_id)
                expired.append(job_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if expired:
        job_transitions.labels(to_status=str(JobStatus.EXPIRED)).inc(len(expired))
        logger.info(f"Expired {len(expired)} stale jobs: {expired}")
    return expired


async def complete_mission(db: AsyncSession, offer_id: int, current_user) -> Booking:
    offer = await get_offer(db, offer_id)
    check_org_member(offer.operator_org_id, current_user, "offer")
    if offer.status != OfferStatus.AWARDED:
        raise _conflict(f"Offer {offer_id} is {offer.status}; only AWARDED offers can be completed")

    res = await db.execute(select(Booking).where(Booking.job_id == offer.job_id))
    booking = res.scalars().first()
    check_not_found(booking, "Booking")

    now = utcnow()
    try:
        result = await db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == BookingStatus.CONFIRMED)
            .values(status=BookingStatus.DONE, executed_end_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _conflict(f"Booking {booking.id} is {booking.status}; mission already closed")
        await db.execute(
            update(Job)
            .where(Job.id == offer.job_id, Job.status == JobStatus.AWARDED)
            .values(status=JobStatus.DONE, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(booking)
    job_transitions.labels(to_status=str(JobStatus.DONE)).inc()
    logger.info(f"Mission for job {offer.job_id} completed by org {offer.operator_org_id}")
    return booking


async def get_offer_thread(db: AsyncSession, offer_id: int, current_user) -> JobOffer:
    """Offer whose chat the user may use: buyer or operator side, once awarded."""
    offer = await get_offer(db, offer_id)
    job = await get_job(db, offer.job_id)
    check_party(current_user, "offer", job.buyer_org_id, offer.operator_org_id)
    if offer.status != OfferStatus.AWARDED:
        raise HTTPException(status_code=403, detail="Messaging is available only for awarded offers")
    return offer
