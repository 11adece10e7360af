from fastapi import APIRouter, Depends, Query
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from typing import Optional, List

from app.db.session import get_db
from app.models.offer import JobOffer, OfferMessage
from app.schemas.offer import OfferOut
from app.schemas.booking import BookingOut
from app.schemas.message import MessageCreate, MessageOut
from app.core.security import get_current_user, require_role
from app.core.audit_decorator import audit_log
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import filter_by_org
from app.core.response_builders import build_offer_response_list, build_booking_response, build_message_response
from app.core.enums import AuditAction, OfferStatus, UserRole
from app.services import marketplace
from app.services.webhook import send_webhook

router = APIRouter(prefix="/offers", tags=["offers"])


@router.get("/mine", response_model=List[OfferOut])
async def list_my_offers(
    status: Optional[OfferStatus] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    q = filter_by_org(select(JobOffer), JobOffer.operator_org_id, current_user)

    if status:
        q = q.where(JobOffer.status == status)

    q = q.order_by(JobOffer.created_at.desc(), JobOffer.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)

    return build_offer_response_list(res.scalars().all())


@router.post("/{offer_id}/complete", response_model=BookingOut)
@audit_log(AuditAction.COMPLETE_MISSION)
async def complete_mission(
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    booking = await marketplace.complete_mission(db, offer_id, current_user)

    await send_webhook({
        "event": "booking.completed",
        "booking_id": booking.id,
        "job_id": booking.job_id,
        "offer_id": offer_id,
        "status": str(booking.status),
        "executed_end_at": booking.executed_end_at.isoformat() if booking.executed_end_at else None,
    })

    return build_booking_response(booking)


@router.get("/{offer_id}/messages", response_model=List[MessageOut])
async def list_offer_messages(
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await marketplace.get_offer_thread(db, offer_id, current_user)

    res = await db.execute(
        select(OfferMessage)
        .where(OfferMessage.offer_id == offer_id)
        .options(selectinload(OfferMessage.sender))
        .order_by(OfferMessage.created_at, OfferMessage.id)
    )
    return [build_message_response(m, offer_id) for m in res.scalars().all()]


@router.post("/{offer_id}/messages", response_model=MessageOut)
async def post_offer_message(
    offer_id: int,
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    offer = await marketplace.get_offer_thread(db, offer_id, current_user)

    message = OfferMessage(
        offer_id=offer.id,
        # admins post on behalf of the operator side
        sender_org_id=current_user.organization_id or offer.operator_org_id,
        sender_user_id=int(current_user.id),
        body=payload.content,
        is_read=False,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message, attribute_names=["sender"])

    return build_message_response(message, offer_id)


@router.put("/{offer_id}/messages/read")
async def mark_offer_messages_read(
    offer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await marketplace.get_offer_thread(db, offer_id, current_user)

    if current_user.organization_id is None:
        not_mine = OfferMessage.sender_user_id != current_user.id
    else:
        not_mine = OfferMessage.sender_org_id != current_user.organization_id

    result = await db.execute(
        update(OfferMessage)
        .where(
            OfferMessage.offer_id == offer_id,
            not_mine,
            OfferMessage.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return {"marked_read": result.rowcount}
