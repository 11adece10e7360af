from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.models.base import BaseModel


class CartItem(BaseModel):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_user_product"),
    )

    user_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(ForeignKey("products.id"), nullable=False)
    product = relationship("Product")
    quantity = Column(Integer, nullable=False, default=1)
