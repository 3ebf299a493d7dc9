from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.auth import UserPrincipal, get_current_user, require_admin, require_self, require_self_or_admin
from medibook.database import get_db
from medibook.exceptions import ValidationError
from medibook.schemas.user import PhotoResponse, UserListResponse, UserProfile, UserSummary, UserUpdate
from medibook.services import account_service
from medibook.services.image_service import (
    MAX_IMAGE_SIZE_BYTES,
    ImageStorage,
    get_image_storage,
    validate_image_file,
)

router = APIRouter()


@router.get("", response_model=UserListResponse)
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_admin),
):
    users, total = await account_service.list_users(db)
    return UserListResponse(
        total_users=total,
        users=[UserSummary.model_validate(u) for u in users],
    )


@router.post("/photo/{id}", response_model=PhotoResponse)
async def upload_profile_photo(
    id: int,
    profile_photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_self),
    storage: ImageStorage = Depends(get_image_storage),
):
    # Never buffer more than one byte past the limit
    content = await profile_photo.read(MAX_IMAGE_SIZE_BYTES + 1)
    is_valid, error = validate_image_file(profile_photo.filename or "", len(content), profile_photo.content_type)
    if not is_valid:
        raise ValidationError(error)

    user = await account_service.get_user(db, id)
    user = await account_service.set_profile_photo(
        db, user, content, profile_photo.filename, profile_photo.content_type, storage
    )
    return PhotoResponse(message="Profile photo updated successfully!", profile_photo=user.profile_photo)


@router.delete("/photo/{id}", response_model=PhotoResponse)
async def remove_profile_photo(
    id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_self),
    storage: ImageStorage = Depends(get_image_storage),
):
    user = await account_service.get_user(db, id)
    user = await account_service.remove_profile_photo(db, user, storage)
    return PhotoResponse(
        message="Photo removed successfully, and default photo has been set.",
        profile_photo=user.profile_photo,
    )


@router.get("/{id}", response_model=UserProfile)
async def get_user(
    id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    user = await account_service.get_user(db, id)
    return UserProfile.model_validate(user)


@router.put("/{id}", response_model=UserProfile)
async def update_user(
    id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_self),
):
    user = await account_service.update_user(db, id, data)
    return UserProfile.model_validate(user)


@router.delete("/{id}")
async def delete_user(
    id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_self_or_admin),
):
    await account_service.delete_user(db, id)
    return {"success": True, "message": "User deleted successfully"}
