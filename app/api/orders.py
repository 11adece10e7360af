from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from typing import Optional, List

from app.db.session import get_db
from app.models.order import Order, OrderMessage
from app.schemas.order import CheckoutIn, OrderStatusUpdate, OrderOut
from app.schemas.message import MessageCreate, MessageOut
from app.core.security import get_current_user
from app.utils.idempotency import get_idempotent, set_idempotent
from app.core.audit_decorator import audit_log
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import filter_by_org
from app.core.response_builders import build_order_response, build_message_response
from app.core.enums import AuditAction, OrderStatus
from app.services.checkout import checkout as checkout_cart, change_order_status, get_order as load_order
from app.services.webhook import send_webhook

router = APIRouter(prefix="/orders", tags=["orders"])

WEBHOOK_ORDER_STATUSES = {OrderStatus.PAID, OrderStatus.SHIPPED}


@router.post("/checkout", response_model=OrderOut)
@audit_log(AuditAction.CHECKOUT)
async def checkout(
    payload: CheckoutIn,
    idempotency_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    if idempotency_key:
        prev = await get_idempotent(idempotency_key, int(current_user.id))
        if prev:
            return prev

    order = await checkout_cart(db, payload, current_user)

    out = build_order_response(order)
    if idempotency_key:
        await set_idempotent(idempotency_key, int(current_user.id), out.model_dump(mode="json"))
    return out


@router.get("/", response_model=List[OrderOut])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = filter_by_org(select(Order).options(selectinload(Order.items)), Order.buyer_org_id, current_user)

    if status:
        q = q.where(Order.status == status)

    q = q.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset)
    res = await db.execute(q)

    return [build_order_response(order) for order in res.scalars().all()]


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    order = await load_order(db, order_id, current_user)
    return build_order_response(order)


@router.put("/{order_id}/status", response_model=OrderOut)
@audit_log(AuditAction.UPDATE_ORDER_STATUS)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    order = await change_order_status(db, order_id, payload.status, current_user)

    if order.status in WEBHOOK_ORDER_STATUSES:
        await send_webhook({
            "event": "order.status_changed",
            "order_id": order.id,
            "total_cents": order.total_cents,
            "status": str(order.status),
        })

    return build_order_response(order)


@router.get("/{order_id}/messages", response_model=List[MessageOut])
async def list_order_messages(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_order(db, order_id, current_user)

    res = await db.execute(
        select(OrderMessage)
        .where(OrderMessage.order_id == order_id)
        .options(selectinload(OrderMessage.sender))
        .order_by(OrderMessage.created_at, OrderMessage.id)
    )
    return [build_message_response(m, order_id) for m in res.scalars().all()]


@router.post("/{order_id}/messages", response_model=MessageOut)
async def post_order_message(
    order_id: int,
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))

    await load_order(db, order_id, current_user)

    message = OrderMessage(
        order_id=order_id,
        sender_user_id=int(current_user.id),
        sender_org_id=current_user.organization_id,
        body=payload.content,
        is_read=False,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message, attribute_names=["sender"])

    return build_message_response(message, order_id)


@router.put("/{order_id}/messages/read")
async def mark_order_messages_read(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await load_order(db, order_id, current_user)

    result = await db.execute(
        update(OrderMessage)
        .where(
            OrderMessage.order_id == order_id,
            OrderMessage.sender_user_id != int(current_user.id),
            OrderMessage.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return {"marked_read": result.rowcount}
