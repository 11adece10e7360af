from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from app.db.session import get_db
from app.models.rate_card import RateCard
from app.schemas.rate_card import RateCardCreate, RateCardUpdate, RateCardOut
from app.core.security import require_role
from app.core.audit_decorator import audit_log
from app.core.rate_limit import check_rate_limit
from app.utils.quote_cache import invalidate_seller_quotes
from app.core.auth_utils import is_admin, require_organization, check_org_member, check_not_found, filter_by_org
from app.core.response_builders import build_rate_card_response
from app.core.enums import AuditAction, ServiceType, UserRole

router = APIRouter(prefix="/rate-cards", tags=["rate-cards"])

operator_only = require_role(UserRole.OPERATOR)


async def _get_rate_card(db: AsyncSession, rate_card_id: int, current_user) -> RateCard:
    res = await db.execute(select(RateCard).where(RateCard.id == rate_card_id))
    rate_card = res.scalars().first()
    check_not_found(rate_card, "Rate card", rate_card_id)
    check_org_member(rate_card.seller_org_id, current_user, "rate card")
    return rate_card


@router.post("/", response_model=RateCardOut)
@audit_log(AuditAction.CREATE_RATE_CARD)
async def create_rate_card(
    payload: RateCardCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(operator_only)
):
    await check_rate_limit(int(current_user.id))

    if is_admin(current_user) and payload.seller_org_id is not None:
        seller_org_id = payload.seller_org_id
    else:
        seller_org_id = require_organization(current_user)

    duplicate_detail = f"A {payload.service_type} rate card already exists for organization {seller_org_id}"
    res = await db.execute(
        select(RateCard.id).where(
            RateCard.seller_org_id == seller_org_id,
            RateCard.service_type == payload.service_type,
        )
    )
    if res.scalars().first() is not None:
        raise HTTPException(status_code=409, detail=duplicate_detail)

    rate_card = RateCard(
        seller_org_id=seller_org_id,
        **payload.model_dump(mode="json", exclude={"seller_org_id"}),
    )
    db.add(rate_card)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=duplicate_detail)
    await db.refresh(rate_card)
    await invalidate_seller_quotes(seller_org_id)

    return build_rate_card_response(rate_card)


@router.get("/", response_model=List[RateCardOut])
async def list_rate_cards(
    service_type: Optional[ServiceType] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(operator_only)
):
    q = filter_by_org(select(RateCard), RateCard.seller_org_id, current_user)

    if service_type:
        q = q.where(RateCard.service_type == service_type)

    q = q.order_by(RateCard.id).limit(limit).offset(offset)
    res = await db.execute(q)

    return [build_rate_card_response(rc) for rc in res.scalars().all()]


@router.get("/{rate_card_id}", response_model=RateCardOut)
async def get_rate_card(
    rate_card_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(operator_only)
):
    rate_card = await _get_rate_card(db, rate_card_id, current_user)
    return build_rate_card_response(rate_card)


@router.put("/{rate_card_id}", response_model=RateCardOut)
@audit_log(AuditAction.UPDATE_RATE_CARD)
async def update_rate_card(
    rate_card_id: int,
    payload: RateCardUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(operator_only)
):
    await check_rate_limit(int(current_user.id))

    rate_card = await _get_rate_card(db, rate_card_id, current_user)

    for field, value in payload.model_dump(mode="json", exclude_unset=True, exclude_none=True).items():
        setattr(rate_card, field, value)

    db.add(rate_card)
    await db.commit()
    await db.refresh(rate_card)
    await invalidate_seller_quotes(rate_card.seller_org_id)

    return build_rate_card_response(rate_card)


@router.delete("/{rate_card_id}")
@audit_log(AuditAction.DELETE_RATE_CARD)
async def delete_rate_card(
    rate_card_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(operator_only)
):
    await check_rate_limit(int(current_user.id))

    rate_card = await _get_rate_card(db, rate_card_id, current_user)

    seller_org_id = rate_card.seller_org_id
    await db.delete(rate_card)
    await db.commit()
    await invalidate_seller_quotes(seller_org_id)

    return {"deleted": True}
