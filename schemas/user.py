from datetime import datetime
from typing import Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UserResponse(CamelModel):
    """password, refresh_token 필드는 절대 포함하지 않음"""

    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: int
    username: str
    email: str
    full_name: str


class LoginRequest(CamelModel):
    identifier: Optional[str] = None
    password: Optional[str] = None


class Token(CamelModel):
    access_token: str
    refresh_token: str


class LoginResponse(Token):
    user: UserResponse


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class AccountUpdate(CamelModel):
    """계정 정보 부분 수정. 전달된 필드만 model_fields_set에 포함됨"""

    email: Optional[str] = None
    full_name: Optional[str] = None
    username: Optional[str] = None


class ChannelProfile(CamelModel):
    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: Optional[str] = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False
    created_at: Optional[datetime] = None


class HistoryOwner(CamelModel):
    id: int
    username: str
    email: str
    full_name: str
    avatar: str
