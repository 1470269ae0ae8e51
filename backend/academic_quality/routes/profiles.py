"""
Profile and role API routes.

Owners edit their own profile; admins edit any profile and manage the
single role assignment of each identity. Profiles are never deleted here.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.errors import NotFoundError
from academic_quality.models.profile import Role
from academic_quality.serializers import serialize_profile
from academic_quality.services import entity_store
from academic_quality.services.identity import SessionContext

router = APIRouter()


class ProfileUpdate(BaseModel):
    first_name: str
    last_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class RoleAssignment(BaseModel):
    role: Role


@router.put("/api/profile")
def update_own_profile(request: ProfileUpdate,
                       context: SessionContext = Depends(require_roles()),
                       db: Session = Depends(get_db)):
    """Update the signed-in identity's own profile."""
    if context.profile is None:
        # Profile lookup failed or is missing; nothing to update
        raise NotFoundError("Profile")
    profile = entity_store.update_profile(db, context.profile.id, request.model_dump())
    return serialize_profile(profile)


@router.get("/api/profiles")
def list_profiles(search: Optional[str] = Query(None, description="Search name or email"),
                  context: SessionContext = Depends(require_roles(Role.ADMIN)),
                  db: Session = Depends(get_db)):
    rows = entity_store.list_profiles(db, search)
    return {
        "data": [
            {**serialize_profile(profile), "role": role.value if role else None}
            for profile, role in rows
        ],
        "total": len(rows),
    }


@router.put("/api/profiles/{profile_id}")
def update_profile(profile_id: str, request: ProfileUpdate,
                   context: SessionContext = Depends(require_roles(Role.ADMIN)),
                   db: Session = Depends(get_db)):
    profile = entity_store.update_profile(db, profile_id, request.model_dump())
    return serialize_profile(profile)


@router.put("/api/users/{user_id}/role")
def assign_role(user_id: str, request: RoleAssignment,
                context: SessionContext = Depends(require_roles(Role.ADMIN)),
                db: Session = Depends(get_db)):
    role_row = entity_store.assign_role(db, user_id, request.role)
    return {"user_id": str(role_row.user_id), "role": role_row.role.value}


@router.delete("/api/users/{user_id}/role")
def revoke_role(user_id: str,
                context: SessionContext = Depends(require_roles(Role.ADMIN)),
                db: Session = Depends(get_db)):
    entity_store.revoke_role(db, user_id)
    return {"message": "Role revoked successfully", "user_id": user_id}
