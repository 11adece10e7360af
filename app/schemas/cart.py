from pydantic import BaseModel, Field
from typing import List


class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=1000)


class CartItemUpdate(BaseModel):
    # 0 removes the line
    quantity: int = Field(ge=0, le=1000)


class CartLineOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    unit_price_cents: int
    quantity: int
    line_total_cents: int


class CartOut(BaseModel):
    items: List[CartLineOut]
    total_cents: int
    currency: str
