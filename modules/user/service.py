import logging
from typing import Dict, List, Optional, Tuple

from fastapi import UploadFile
from jose import JWTError
from sqlalchemy.orm import Session

from config.config import settings
from core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    UploadError,
    ValidationError,
)
from models.user import User
from models.video import Video
from schemas.user import AccountUpdate, ChannelProfile
from utils.auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from utils.files import has_file, save_upload_to_temp
from utils.s3_client import MediaStorage
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


class UserService:
    def __init__(self, db: Session, media: Optional[MediaStorage] = None):
        self.repository = UserRepository(db)
        self.media = media

    # ---------- 인증 / 세션 ----------

    def register(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        full_name: Optional[str],
        avatar: Optional[UploadFile],
        cover_image: Optional[UploadFile] = None,
    ) -> User:
        if any(_is_blank(field) for field in (username, email, password, full_name)):
            raise ValidationError("All fields are required")

        username = username.strip().lower()
        email = email.strip()

        if self.repository.find_by_username_or_email(username, email):
            raise ConflictError("Username or email already exists")

        if not has_file(avatar):
            raise ValidationError("Please provide an avatar")

        avatar_upload = self.media.upload_file(save_upload_to_temp(avatar))
        if avatar_upload is None:
            raise UploadError("Error while uploading avatar")

        cover_image_url = settings.DEFAULT_COVER_IMAGE_URL
        if has_file(cover_image):
            cover_upload = self.media.upload_file(save_upload_to_temp(cover_image))
            if cover_upload is None:
                raise UploadError("Error while uploading cover image")
            cover_image_url = cover_upload.url

        user = self.repository.create_user(
            username=username,
            email=email,
            full_name=full_name.strip(),
            password=get_password_hash(password),
            avatar=avatar_upload.url,
            cover_image=cover_image_url,
        )
        logger.info(f"User registered: id={user.id} username={user.username}")
        return user

    def _issue_tokens(self, user: User) -> Tuple[str, str]:
        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user)
        self.repository.set_refresh_token(user, refresh_token)
        return access_token, refresh_token

    def login(self, identifier: Optional[str], password: Optional[str]) -> Tuple[User, str, str]:
        if _is_blank(identifier) or not password:
            raise ValidationError("All fields are required")

        identifier = identifier.strip()
        user = self.repository.find_by_username_or_email(identifier.lower(), identifier)
        if not user:
            raise NotFoundError("User not found, register first")

        if not verify_password(password, user.password):
            raise AuthError("Invalid credentials")

        access_token, refresh_token = self._issue_tokens(user)
        logger.info(f"User logged in: id={user.id}")
        return user, access_token, refresh_token

    def logout(self, user: User) -> None:
        self.repository.set_refresh_token(user, None)
        logger.info(f"User logged out: id={user.id}")

    def refresh_access_token(self, incoming_refresh_token: Optional[str]) -> Tuple[str, str]:
        if not incoming_refresh_token:
            raise AuthError("Unauthorized request")

        try:
            user_id = decode_token(incoming_refresh_token, settings.REFRESH_TOKEN_SECRET, "refresh")
        except JWTError as e:
            logger.debug(f"Refresh token rejected: {e}")
            raise AuthError("Invalid refresh token")

        user = self.repository.get_by_id(user_id)
        if user is None:
            raise AuthError("Invalid refresh token")

        # 이미 교체된 토큰은 서명이 유효해도 거부
        if incoming_refresh_token != user.refresh_token:
            raise AuthError("Refresh token is expired or used")

        tokens = self._issue_tokens(user)
        logger.info(f"Tokens rotated: id={user.id}")
        return tokens

    def change_password(self, user: User, old_password: Optional[str], new_password: Optional[str]) -> None:
        if not old_password or not new_password:
            raise ValidationError("All fields are required")

        if not verify_password(old_password, user.password):
            raise AuthError("Old password is incorrect", status_code=400)

        if old_password == new_password:
            raise ValidationError("New password cannot be the same as the current password")

        self.repository.update_user(user, password=get_password_hash(new_password))

    # ---------- 계정 정보 ----------

    def get_current_user(self, user_id: int) -> User:
        user = self.repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_account_details(self, user: User, patch: AccountUpdate) -> User:
        provided: Dict[str, str] = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if not _is_blank(value)
        }
        if not provided:
            raise ValidationError("At least one field is required")

        updates: Dict[str, str] = {}

        email = provided.get("email")
        if email is not None:
            email = email.strip()
            if email != user.email:
                existing = self.repository.get_by_email(email)
                if existing is not None and existing.id != user.id:
                    raise ConflictError("Email already in use")
                updates["email"] = email

        username = provided.get("username")
        if username is not None:
            username = username.strip().lower()
            if username != user.username:
                existing = self.repository.get_by_username(username)
                if existing is not None and existing.id != user.id:
                    raise ConflictError("Username already in use")
                updates["username"] = username

        if "full_name" in provided:
            updates["full_name"] = provided["full_name"].strip()

        return self.repository.update_user(user, **updates)

    def _replace_image(self, user: User, upload: Optional[UploadFile], field: str, label: str) -> User:
        if not has_file(upload):
            raise ValidationError(f"Please provide {label}")

        # 이전 이미지는 best-effort로 삭제 (버킷 밖의 URL이면 건너뜀)
        self.media.delete_by_url(getattr(user, field))

        uploaded = self.media.upload_file(save_upload_to_temp(upload))
        if uploaded is None:
            raise UploadError(f"Error while uploading {label}")

        return self.repository.update_user(user, **{field: uploaded.url})

    def update_avatar(self, user: User, avatar: Optional[UploadFile]) -> User:
        return self._replace_image(user, avatar, "avatar", "an avatar")

    def update_cover_image(self, user: User, cover_image: Optional[UploadFile]) -> User:
        return self._replace_image(user, cover_image, "cover_image", "a cover image")

    # ---------- 채널 / 시청 기록 ----------

    def get_channel_profile(self, username: Optional[str], viewer: Optional[User]) -> ChannelProfile:
        if _is_blank(username):
            raise ValidationError("Username is missing")

        result = self.repository.get_channel_profile(username.strip().lower(), viewer.id if viewer else None)
        if result is None:
            raise NotFoundError("Channel does not exist")

        channel, subscribers_count, subscribed_to_count, is_subscribed = result
        return ChannelProfile(
            id=channel.id,
            username=channel.username,
            email=channel.email,
            full_name=channel.full_name,
            avatar=channel.avatar,
            cover_image=channel.cover_image,
            subscribers_count=subscribers_count,
            channels_subscribed_to_count=subscribed_to_count,
            is_subscribed=is_subscribed,
            created_at=channel.created_at,
        )

    def get_watch_history(self, user_id: int) -> List[Video]:
        if self.repository.get_by_id(user_id) is None:
            return []
        return self.repository.get_watch_history(user_id)
