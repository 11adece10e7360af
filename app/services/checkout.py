"""Cart checkout and order status transitions."""
import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.core.auth_utils import check_not_found, check_org_member, is_admin, require_organization
from app.core.config import settings
from app.core.enums import OrderStatus
from app.models.cart import CartItem
from app.models.order import Order, OrderItem
from app.models.product import Product
from app.schemas.order import CheckoutIn

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


async def load_cart(db: AsyncSession, user_id: int) -> List[CartItem]:
    res = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .options(selectinload(CartItem.product))
        .order_by(CartItem.id)
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


async def get_order(db: AsyncSession, order_id: int, current_user) -> Order:
    res = await db.execute(
        select(Order).where(Order.id == order_id).options(selectinload(Order.items))
    )
    order = res.scalars().first()
    check_not_found(order, "Order", order_id)
    check_org_member(order.buyer_org_id, current_user, "order")
    return order


async def checkout(db: AsyncSession, payload: CheckoutIn, current_user) -> Order:
    """Turn the user's cart into a PENDING order, reserving stock."""
    buyer_org_id = require_organization(current_user)
    user_id = int(current_user.id)
    items = await load_cart(db, user_id)
    if not items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    order = Order(
        buyer_org_id=buyer_org_id,
        created_by=user_id,
        status=OrderStatus.PENDING,
        total_cents=0,
        currency=settings.DEFAULT_CURRENCY,
        shipping_address=payload.shipping_address,
        notes=payload.notes,
    )
    try:
        for item in items:
            product = item.product
            if not product.is_active:
                raise HTTPException(status_code=400, detail=f"Product {product.sku} is no longer available")

            result = await db.execute(
                update(Product)
                .where(Product.id == product.id, Product.stock >= item.quantity)
                .values(stock=Product.stock - item.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise HTTPException(status_code=409, detail=f"Insufficient stock for {product.sku}")

            line_total = product.price_cents * item.quantity
            order.items.append(OrderItem(
                product_id=product.id,
                product_name=product.name,
                unit_price_cents=product.price_cents,
                quantity=item.quantity,
                line_total_cents=line_total,
            ))
            order.total_cents += line_total

        db.add(order)
        await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Order {order.id} placed by org {buyer_org_id}: {len(items)} lines, {order.total_cents} cents")
    return await get_order(db, order.id, current_user)


async def change_order_status(db: AsyncSession, order_id: int, new_status: OrderStatus, current_user) -> Order:
    """Admins drive fulfilment; buyers may only cancel."""
    order = await get_order(db, order_id, current_user)
    if not is_admin(current_user) and new_status != OrderStatus.CANCELLED:
        raise HTTPException(status_code=403, detail="Only admins can advance order fulfilment")

    if new_status not in ORDER_TRANSITIONS[order.status]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move order from {order.status} to {new_status}"
        )

    try:
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == order.status)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise HTTPException(status_code=409, detail=f"Order {order_id} changed concurrently")

        if new_status == OrderStatus.CANCELLED:
            for item in order.items:
                await db.execute(
                    update(Product)
                    .where(Product.id == item.product_id)
                    .values(stock=Product.stock + item.quantity)
                    .execution_options(synchronize_session=False)
                )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Order {order_id} moved to {new_status}")
    await db.refresh(order, attribute_names=["status", "updated_at"])
    return order
