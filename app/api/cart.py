from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.db.session import get_db
from app.models.cart import CartItem
from app.models.product import Product
from app.schemas.cart import CartItemAdd, CartItemUpdate, CartOut
from app.core.security import get_current_user
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import check_not_found
from app.core.response_builders import build_cart_response
from app.services.checkout import load_cart

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_response(db: AsyncSession, user_id: int) -> CartOut:
    return build_cart_response(await load_cart(db, user_id))


async def _own_cart_item(db: AsyncSession, item_id: int, user_id: int) -> CartItem:
    res = await db.execute(
        select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
    )
    item = res.scalars().first()
    check_not_found(item, "Cart item", item_id)
    return item


@router.get("/", response_model=CartOut)
async def get_cart(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    return await _cart_response(db, int(current_user.id))


@router.post("/items", response_model=CartOut)
async def add_cart_item(
    payload: CartItemAdd,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    user_id = int(current_user.id)

    res = await db.execute(select(Product).where(Product.id == payload.product_id))
    product = res.scalars().first()
    check_not_found(product, "Product", payload.product_id)
    if not product.is_active:
        raise HTTPException(status_code=400, detail=f"Product {product.sku} is not available")

    res = await db.execute(
        select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == payload.product_id)
    )
    item = res.scalars().first()
    if item:
        item.quantity += payload.quantity
    else:
        item = CartItem(user_id=user_id, product_id=payload.product_id, quantity=payload.quantity)
    db.add(item)
    await db.commit()

    return await _cart_response(db, user_id)


@router.put("/items/{item_id}", response_model=CartOut)
async def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    user_id = int(current_user.id)

    item = await _own_cart_item(db, item_id, user_id)
    if payload.quantity == 0:
        await db.delete(item)
    else:
        item.quantity = payload.quantity
        db.add(item)
    await db.commit()

    return await _cart_response(db, user_id)


@router.delete("/items/{item_id}", response_model=CartOut)
async def remove_cart_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    user_id = int(current_user.id)

    item = await _own_cart_item(db, item_id, user_id)
    await db.delete(item)
    await db.commit()

    return await _cart_response(db, user_id)
