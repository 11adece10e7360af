from sqlalchemy import Column, String, Integer, Boolean, Enum, ForeignKey
from app.models.base import BaseModel
from app.core.enums import ProductCategory


class Product(BaseModel):
    __tablename__ = "products"

    vendor_org_id = Column(ForeignKey("organizations.id"), nullable=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(Enum(ProductCategory), nullable=False)
    description = Column(String, nullable=True)
    price_cents = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
