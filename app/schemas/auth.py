from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from app.core.enums import OrgType, UserRole


class RegisterIn(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    organization_name: str = Field(min_length=1)
    org_type: OrgType
    password: str = Field(min_length=8)
    base_location_lat: Optional[float] = Field(None, ge=-90, le=90)
    base_location_lng: Optional[float] = Field(None, ge=-180, le=180)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    organization_id: Optional[int] = None
