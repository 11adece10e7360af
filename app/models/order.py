from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import OrderStatus


class Order(BaseModel):
    __tablename__ = "orders"

    buyer_org_id = Column(ForeignKey("organizations.id"), nullable=False, index=True)
    created_by = Column(ForeignKey("users.id"), nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    shipping_address = Column(String, nullable=True)
    notes = Column(String, nullable=True)


class OrderItem(BaseModel):
    __tablename__ = "order_items"

    order_id = Column(ForeignKey("orders.id"), nullable=False, index=True)
    order = relationship("Order", back_populates="items")
    product_id = Column(ForeignKey("products.id"), nullable=False)

    product_name = Column(String(200), nullable=False)
    unit_price_cents = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total_cents = Column(Integer, nullable=False)


class OrderMessage(BaseModel):
    __tablename__ = "order_messages"

    order_id = Column(ForeignKey("orders.id"), nullable=False, index=True)
    sender_user_id = Column(ForeignKey("users.id"), nullable=False)
    sender = relationship("User")
    sender_org_id = Column(ForeignKey("organizations.id"), nullable=True)

    body = Column(String, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
