from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional, List

from app.db.session import get_db
from app.models.product import Product
from app.schemas.catalog import ProductCreate, ProductUpdate, ProductOut
from app.core.security import require_role
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import check_org_member, check_not_found
from app.core.response_builders import build_product_response
from app.core.enums import ProductCategory, UserRole

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/products", response_model=List[ProductOut])
async def list_products(
    category: Optional[ProductCategory] = Query(None),
    q: Optional[str] = Query(None, min_length=1, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    query = select(Product).where(Product.is_active.is_(True))

    if category:
        query = query.where(Product.category == category)
    if q:
        query = query.where(Product.name.ilike(f"%{q}%"))

    query = query.order_by(Product.name, Product.id).limit(limit).offset(offset)
    res = await db.execute(query)

    return [build_product_response(p) for p in res.scalars().all()]


@router.get("/products/{product_id}", response_model=ProductOut)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(Product).where(Product.id == product_id))
    product = res.scalars().first()
    check_not_found(product, "Product", product_id)

    return build_product_response(product)


@router.post("/products", response_model=ProductOut)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    product = Product(vendor_org_id=current_user.organization_id, **payload.model_dump())
    db.add(product)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"SKU {payload.sku} already exists")
    await db.refresh(product)

    return build_product_response(product)


@router.put("/products/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(UserRole.OPERATOR))
):
    await check_rate_limit(int(current_user.id))

    res = await db.execute(select(Product).where(Product.id == product_id))
    product = res.scalars().first()
    check_not_found(product, "Product", product_id)
    check_org_member(product.vendor_org_id, current_user, "product")

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(product, field, value)

    db.add(product)
    await db.commit()
    await db.refresh(product)

    return build_product_response(product)
