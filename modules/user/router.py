from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from models.user import User
from schemas.response import ApiResponse
from schemas.user import AccountUpdate, UserResponse
from schemas.video import WatchedVideo
from sqlalchemy.orm import Session
from core.database import get_db
from utils.auth import get_current_user, get_optional_user
from utils.s3_client import MediaStorage, get_media_storage
from .service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
) -> UserService:
    return UserService(db, media)


@router.get("/current-user")
def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.get_current_user(current_user.id)
    return ApiResponse(message="User fetched successfully", data=UserResponse.model_validate(user)).to_response()


@router.patch("/update-account")
def update_account_details(
    patch: AccountUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_account_details(current_user, patch)
    return ApiResponse(message="User account details updated", data=UserResponse.model_validate(user)).to_response()


@router.patch("/avatar")
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_avatar(current_user, avatar)
    return ApiResponse(message="Avatar updated successfully", data=UserResponse.model_validate(user)).to_response()


@router.patch("/cover-image")
def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_cover_image(current_user, cover_image)
    return ApiResponse(message="Cover image updated successfully", data=UserResponse.model_validate(user)).to_response()


@router.get("/channel/{username}")
def get_channel_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_user),
    service: UserService = Depends(get_user_service),
):
    """구독자 수, 구독 중인 채널 수, 요청자의 구독 여부를 함께 반환합니다."""
    profile = service.get_channel_profile(username, viewer)
    return ApiResponse(message="Channel profile fetched", data=profile).to_response()


@router.get("/history")
def get_watch_history(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    videos = [WatchedVideo.model_validate(video) for video in service.get_watch_history(current_user.id)]
    return ApiResponse(message="Watch history fetched", data=videos).to_response()
