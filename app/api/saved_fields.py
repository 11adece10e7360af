from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.db.session import get_db
from app.models.saved_field import SavedField
from app.schemas.saved_field import SavedFieldCreate, SavedFieldOut
from app.core.security import get_current_user
from app.core.rate_limit import check_rate_limit
from app.core.auth_utils import check_not_found, require_organization
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/saved-fields", tags=["saved-fields"])


@router.get("/", response_model=List[SavedFieldOut])
async def list_saved_fields(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    org_id = require_organization(current_user)
    res = await db.execute(
        select(SavedField)
        .where(SavedField.organization_id == org_id)
        .order_by(SavedField.created_at.desc(), SavedField.id.desc())
    )
    return res.scalars().all()


@router.post("/", response_model=SavedFieldOut, status_code=201)
async def save_field(
    payload: SavedFieldCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    await check_rate_limit(int(current_user.id))
    org_id = require_organization(current_user)

    field = SavedField(organization_id=org_id, **payload.model_dump())
    db.add(field)
    await db.commit()
    await db.refresh(field)

    logger.info(f"Field {field.id} saved for org {org_id}")
    return field


@router.delete("/{field_id}")
async def delete_saved_field(
    field_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    org_id = require_organization(current_user)
    res = await db.execute(
        select(SavedField).where(SavedField.id == field_id, SavedField.organization_id == org_id)
    )
    field = res.scalars().first()
    check_not_found(field, "Saved field", field_id)

    await db.delete(field)
    await db.commit()
    return {"deleted": True}
