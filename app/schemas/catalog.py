from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.core.enums import ProductCategory


class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    category: ProductCategory
    description: Optional[str] = None
    price_cents: int = Field(gt=0)
    stock: int = Field(0, ge=0)
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ProductCategory] = None
    description: Optional[str] = None
    price_cents: Optional[int] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    vendor_org_id: Optional[int] = None
    sku: str
    name: str
    category: ProductCategory
    description: Optional[str] = None
    price_cents: int
    stock: int
    is_active: bool
    created_at: datetime
