"""
User Module - Admin Routes
============================
Admin-role management. The last active admin can be neither demoted nor
deactivated.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.user.models import User
from modules.user.service import user_service

router = APIRouter(prefix="/api/admin/users", tags=["user-admin"])


class UpdateUserRoleRequest(BaseModel):
    is_admin: bool


def _user_payload(user: User) -> dict:
    return {**user.to_summary(), "is_admin": user.is_admin, "is_active": user.is_active}


@router.patch("/{user_id}/role")
async def update_user_role(
    user_id: int,
    body: UpdateUserRoleRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = user_service.set_admin(db, user_id, body.is_admin, acting_user_id=admin.id)
    return _user_payload(user)


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = user_service.deactivate_user(db, user_id, acting_user_id=admin.id)
    return _user_payload(user)
