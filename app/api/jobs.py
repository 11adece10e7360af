from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from app.db.session import get_db
from app.models.job import Job
from app.models.offer import JobOffer
from app.schemas.job import JobCreate, JobOut
from app.schemas.offer import OfferCreate, OfferUpdate, OfferOut
from app.schemas.booking import AcceptOfferOut
from app.core.security import get_current_user, require_admin, require_role
from app.utils.idempotency import get_idempotent, set_idempotent
from app.core.audit_decorator import audit_log
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import is_admin
from app.core.response_builders import (
    build_job_response,
    build_job_response_list,
    build_offer_response,
    build_offer_response_list,
    build_booking_response,
)
from app.core.enums import AuditAction, JobStatus, ServiceType, UserRole
from app.services import marketplace
from app.services.webhook import send_webhook

router = APIRouter(prefix="/jobs", tags=["jobs"])


async def _has_offered(db: AsyncSession, job_id: int, org_id: Optional[int]) -> bool:
    if org_id is None:
        return False
    res = await db.execute(
        select(JobOffer.id).where(JobOffer.job_id == job_id, JobOffer.operator_org_id == org_id)
    )
    return res.scalars().first() is not None


async def _visible_job(db: AsyncSession, job_id: int, current_user) -> Job:
    job = await marketplace.get_job(db, job_id)
    has_offered = await _has_offered(db, job_id, current_user.organization_id)
    if not marketplace.can_view_job(job, current_user, has_offered):
        raise HTTPException(status_code=403, detail="Forbidden: You cannot view this job")
    return job


@router.post("/", response_model=JobOut)
@audit_log(AuditAction.CREATE_JOB)
async def create_job(
    payload: JobCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.BUYER))
):
    await check_rate_limit(int(current_user.id))

    if idempotency_key:
        prev = await get_idempotent(idempotency_key, int(current_user.id))
        if prev:
            return prev

    job = await marketplace.create_job(db, payload, current_user)

    out = build_job_response(job)
    if idempotency_key:
        await set_idempotent(idempotency_key, int(current_user.id), out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[JobOut])
async def list_jobs(
    status: Optional[JobStatus] = Query(None),
    service_type: Optional[ServiceType] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = select(Job)

    if not is_admin(current_user):
        org_id = current_user.organization_id
        if current_user.role == UserRole.OPERATOR:
            offered = select(JobOffer.job_id).where(JobOffer.operator_org_id == org_id)
            q = q.where(or_(Job.status == JobStatus.OPEN, Job.id.in_(offered), Job.buyer_org_id == org_id))
        else:
            q = q.where(Job.buyer_org_id == org_id)

    if status:
        q = q.where(Job.status == status)
    if service_type:
        q = q.where(Job.service_type == service_type)

    q = q.order_by(Job.created_at.desc(), Job.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    jobs = res.scalars().all()

    return build_job_response_list(jobs)


@router.post("/expire")
async def expire_jobs(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    expired = await marketplace.expire_stale_jobs(db)
    return {"expired": expired, "count": len(expired)}


@router.get("/{job_id}", response_model=JobOut)
async def get_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    job = await _visible_job(db, job_id, current_user)
    return build_job_response(job)


@router.post("/{job_id}/cancel", response_model=JobOut)
@audit_log(AuditAction.CANCEL_JOB)
async def cancel_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    job = await marketplace.cancel_job(db, job_id, current_user)
    return build_job_response(job)


@router.post("/{job_id}/offers", response_model=OfferOut)
@audit_log(AuditAction.SUBMIT_OFFER)
async def submit_offer(
    job_id: int,
    payload: OfferCreate,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    if idempotency_key:
        prev = await get_idempotent(idempotency_key, int(current_user.id))
        if prev:
            return prev

    offer = await marketplace.submit_offer(db, job_id, payload, current_user)

    out = build_offer_response(offer)
    if idempotency_key:
        await set_idempotent(idempotency_key, int(current_user.id), out.model_dump(mode="json"))
    return out


@router.get("/{job_id}/offers", response_model=List[OfferOut])
async def list_job_offers(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    job = await _visible_job(db, job_id, current_user)

    q = select(JobOffer).where(JobOffer.job_id == job_id)
    if not is_admin(current_user) and job.buyer_org_id != current_user.organization_id:
        q = q.where(JobOffer.operator_org_id == current_user.organization_id)

    res = await db.execute(q.order_by(JobOffer.total_cents, JobOffer.id))
    return build_offer_response_list(res.scalars().all())


@router.put("/{job_id}/offers/{offer_id}", response_model=OfferOut)
@audit_log(AuditAction.UPDATE_OFFER)
async def update_offer(
    job_id: int,
    offer_id: int,
    payload: OfferUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    offer = await marketplace.update_offer(db, job_id, offer_id, payload, current_user)
    return build_offer_response(offer)


@router.post("/{job_id}/offers/{offer_id}/withdraw", response_model=OfferOut)
@audit_log(AuditAction.WITHDRAW_OFFER)
async def withdraw_offer(
    job_id: int,
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    offer = await marketplace.withdraw_offer(db, job_id, offer_id, current_user)
    return build_offer_response(offer)


@router.post("/{job_id}/offers/{offer_id}/accept", response_model=AcceptOfferOut)
@audit_log(AuditAction.ACCEPT_OFFER)
async def accept_offer(
    job_id: int,
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    booking = await marketplace.accept_offer(db, job_id, offer_id, current_user)

    await send_webhook({
        "event": "booking.created",
        "booking_id": booking.id,
        "job_id": job_id,
        "offer_id": offer_id,
        "total_cents": booking.total_cents,
        "status": str(booking.status),
    })

    return AcceptOfferOut(
        message="Offer accepted",
        job_id=job_id,
        offer_id=offer_id,
        booking=build_booking_response(booking),
    )
