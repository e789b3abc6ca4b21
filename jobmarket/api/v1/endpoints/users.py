"""
User profile endpoints.

Every route requires an authenticated caller and acts on the caller's own
account. Resume routes are limited to applicants.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.dependencies import (
    Identity,
    authenticate,
    get_auth_service,
    require_applicant,
)
from jobmarket.auth.service import AuthService
from jobmarket.core.database import get_db
from jobmarket.core.errors import NotFound, ValidationFailed
from jobmarket.core.repositories import UserRepository
from jobmarket.core.uploads import PROFILE_PICTURE, RESUME, UploadKind, UploadStore
from jobmarket.models.user import User
from jobmarket.schemas.auth import MessageResponse
from jobmarket.schemas.user import (
    ROLE_PROFILE_FIELDS,
    PasswordChangeRequest,
    ProfileUpdate,
    user_to_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(authenticate)])


def get_upload_store(request: Request) -> UploadStore:
    return request.app.state.upload_store


async def load_user(db: AsyncSession, user_id: int) -> User:
    user = await UserRepository(db).find_user_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def store_upload(
    db: AsyncSession,
    store: UploadStore,
    user_id: int,
    file: UploadFile,
    kind: UploadKind,
    field: str,
) -> User:
    """Save an upload, point `field` at it and drop the file it replaces."""
    user = await load_user(db, user_id)
    previous = getattr(user, field)

    path = await store.save(file, kind)
    try:
        user = await UserRepository(db).update_user(user_id, **{field: path})
        await db.commit()
    except Exception:
        store.delete(path)
        raise

    store.delete(previous)
    return user


def profile_response(user: User, message: Optional[str] = None) -> dict:
    body = {"status": "success", "data": {"user": user_to_profile(user)}}
    if message:
        body["message"] = message
    return body


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile")
async def get_profile(
    identity: Identity = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's profile with the fields of their role."""
    user = await load_user(db, identity.user_id)
    return profile_response(user)


@router.put("/profile")
async def update_profile(
    update: ProfileUpdate,
    identity: Identity = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
):
    """
    Update profile fields.

    Only the fields allowed for the caller's role are applied; anything
    else in the body is ignored. Email and role cannot be changed.
    """
    allowed = ROLE_PROFILE_FIELDS[identity.role]
    updates = {
        field: value
        for field, value in update.model_dump(exclude_unset=True).items()
        if field in allowed and value is not None
    }
    if "website" in updates:
        updates["website"] = str(updates["website"])

    user = await UserRepository(db).update_user(identity.user_id, **updates)
    if not user:
        raise NotFound("User not found")
    await db.commit()

    return profile_response(user, "Profile updated successfully")


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: PasswordChangeRequest,
    identity: Identity = Depends(authenticate),
    service: AuthService = Depends(get_auth_service),
):
    """Change the current user's password."""
    await service.change_password(
        identity.user_id,
        password_data.current_password,
        password_data.new_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.put("/deactivate", response_model=MessageResponse)
async def deactivate_account(
    identity: Identity = Depends(authenticate),
    service: AuthService = Depends(get_auth_service),
):
    """Deactivate the current account and sign it out everywhere."""
    await service.deactivate(identity.user_id)
    return MessageResponse(message="Account deactivated successfully")


# =============================================================================
# Uploads
# =============================================================================

@router.post("/upload-profile-picture")
async def upload_profile_picture(
    file: UploadFile = File(...),
    identity: Identity = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
    store: UploadStore = Depends(get_upload_store),
):
    """Upload or replace the profile picture."""
    user = await store_upload(db, store, identity.user_id, file, PROFILE_PICTURE, "profile_picture")

    return {
        "status": "success",
        "message": "Profile picture uploaded successfully",
        "data": {"profile_picture": user.profile_picture},
    }


@router.delete("/profile-picture", response_model=MessageResponse)
async def delete_profile_picture(
    identity: Identity = Depends(authenticate),
    db: AsyncSession = Depends(get_db),
    store: UploadStore = Depends(get_upload_store),
):
    """Remove the profile picture."""
    user = await load_user(db, identity.user_id)
    if not user.profile_picture:
        raise ValidationFailed("No profile picture to delete")

    previous = user.profile_picture
    await UserRepository(db).update_user(identity.user_id, profile_picture=None)
    await db.commit()
    store.delete(previous)

    return MessageResponse(message="Profile picture deleted successfully")


@router.post("/upload-resume")
async def upload_resume(
    file: UploadFile = File(...),
    identity: Identity = Depends(require_applicant),
    db: AsyncSession = Depends(get_db),
    store: UploadStore = Depends(get_upload_store),
):
    """Upload or replace the resume (applicants only)."""
    user = await store_upload(db, store, identity.user_id, file, RESUME, "resume")

    return {
        "status": "success",
        "message": "Resume uploaded successfully",
        "data": {"resume": user.resume},
    }


@router.delete("/resume", response_model=MessageResponse)
async def delete_resume(
    identity: Identity = Depends(require_applicant),
    db: AsyncSession = Depends(get_db),
    store: UploadStore = Depends(get_upload_store),
):
    """Remove the resume (applicants only)."""
    user = await load_user(db, identity.user_id)
    if not user.resume:
        raise ValidationFailed("No resume to delete")

    previous = user.resume
    await UserRepository(db).update_user(identity.user_id, resume=None)
    await db.commit()
    store.delete(previous)

    return MessageResponse(message="Resume deleted successfully")
