from typing import Optional
from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile, status
from models.user import User
from modules.user.router import get_user_service
from modules.user.service import UserService
from schemas.response import ApiResponse
from schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    Token,
    UserResponse,
)
from utils.auth import (
    REFRESH_TOKEN_COOKIE,
    clear_auth_cookies,
    get_current_user,
    set_auth_cookies,
)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None, alias="fullName"),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    service: UserService = Depends(get_user_service),
):
    # 중복 확인, 비밀번호 해싱, 이미지 업로드는 서비스에서 처리
    user = service.register(username, email, password, full_name, avatar, cover_image)
    return ApiResponse(
        status_code=status.HTTP_201_CREATED,
        message="User created",
        data=UserResponse.model_validate(user),
    ).to_response()


@router.post("/login")
def login(payload: LoginRequest, service: UserService = Depends(get_user_service)):
    user, access_token, refresh_token = service.login(payload.identifier, payload.password)
    data = LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )
    response = ApiResponse(message="User logged in successfully", data=data).to_response()
    set_auth_cookies(response, access_token, refresh_token)
    return response


@router.post("/logout")
def logout(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.logout(current_user)
    response = ApiResponse(message="Logged out successfully").to_response()
    clear_auth_cookies(response)
    return response


@router.post("/refresh-token")
def refresh_access_token(
    request: Request,
    payload: Optional[RefreshTokenRequest] = Body(None),
    service: UserService = Depends(get_user_service),
):
    incoming = request.cookies.get(REFRESH_TOKEN_COOKIE) or (payload.refresh_token if payload else None)
    access_token, refresh_token = service.refresh_access_token(incoming)
    data = Token(access_token=access_token, refresh_token=refresh_token)
    response = ApiResponse(message="Access token refreshed", data=data).to_response()
    set_auth_cookies(response, access_token, refresh_token)
    return response


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current_user, payload.old_password, payload.new_password)
    return ApiResponse(message="Password changed successfully").to_response()
