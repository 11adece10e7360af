from sqlalchemy import Column, String, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    email = Column(String(120), unique=True, nullable=False, index=True)
    first_name = Column(String(80))
    last_name = Column(String(80))
    phone = Column(String(40))
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.BUYER)
    organization_id = Column(ForeignKey("organizations.id"), nullable=True)
    organization = relationship("Organization", backref="members")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
