"""Authentication and authorization utilities"""
from fastapi import HTTPException
from typing import Optional
from app.core.enums import UserRole


def is_admin(current_user) -> bool:
    return current_user.role == UserRole.ADMIN


def require_organization(current_user) -> int:
    if current_user.organization_id is None:
        raise HTTPException(status_code=403, detail="Forbidden: user has no organization")
    return int(current_user.organization_id)


def check_org_member(org_id: Optional[int], current_user, resource_name: str = "Resource") -> None:

    if is_admin(current_user):
        return
    if org_id is None or org_id != current_user.organization_id:
        raise HTTPException(
            status_code=403,
            detail=f"Forbidden: You can only access your own organization's {resource_name}s"
        )


def check_party(current_user, resource_name: str, *org_ids: Optional[int]) -> None:
    """Admit admins and members of any of the given organizations."""
    if is_admin(current_user):
        return
    if current_user.organization_id is None or current_user.organization_id not in org_ids:
        raise HTTPException(
            status_code=403,
            detail=f"Forbidden: You are not a party to this {resource_name}"
        )


def filter_by_org(query, column, current_user):

    if is_admin(current_user):
        return query
    return query.where(column == current_user.organization_id)


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[int] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} with id {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")
