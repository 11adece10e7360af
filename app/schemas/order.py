from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.core.enums import OrderStatus


class CheckoutIn(BaseModel):
    shipping_address: Optional[str] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    unit_price_cents: int
    quantity: int
    line_total_cents: int


class OrderOut(BaseModel):
    id: int
    buyer_org_id: int
    status: OrderStatus
    total_cents: int
    currency: str
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    items: List[OrderItemOut] = []
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
