from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.auth import RegisterIn, TokenOut, UserOut
from app.models.user import User
from app.models.organization import Organization
from app.db.session import get_db
from app.core.security import create_access_token, get_current_user, hash_password, verify_password
from app.core.enums import UserRole, OrgType
from app.core.audit_log import log_audit
from app.core.enums import AuditAction

router = APIRouter(prefix="/auth", tags=["auth"])


def role_for_org_type(org_type: OrgType) -> UserRole:
    return UserRole.OPERATOR if org_type == OrgType.SERVICE_PROVIDER else UserRole.BUYER


@router.post("/register", response_model=TokenOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)):
    email = payload.email.lower()
    res = await db.execute(select(User).where(User.email == email))
    if res.scalars().first():
        raise HTTPException(status_code=409, detail="Email already registered")

    org = Organization(
        legal_name=payload.organization_name,
        org_type=payload.org_type,
        base_location_lat=payload.base_location_lat,
        base_location_lng=payload.base_location_lng,
    )
    db.add(org)
    await db.flush()

    new_user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
        role=role_for_org_type(payload.org_type),
        organization_id=org.id,
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    await db.refresh(new_user)

    await log_audit(db, int(new_user.id), AuditAction.REGISTER, {"email": email, "org_id": org.id})

    token = create_access_token(str(new_user.id), new_user.role)
    return {"access_token": token}


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.email == form_data.username.lower()))
    user = res.scalars().first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    await log_audit(db, int(user.id), AuditAction.LOGIN, {"email": user.email})

    token = create_access_token(str(user.id), user.role)
    return {"access_token": token}


@router.get("/me", response_model=UserOut)
async def me(current_user=Depends(get_current_user)):
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        role=current_user.role,
        organization_id=current_user.organization_id,
    )
