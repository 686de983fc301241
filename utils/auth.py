import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import Response
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config.config import settings
from core.database import get_db
from core.exceptions import AuthError
from models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES
REFRESH_TOKEN_EXPIRE_DAYS = settings.REFRESH_TOKEN_EXPIRE_DAYS
ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict, secret: str, expires_delta: timedelta) -> str:
    to_encode = claims.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    # jti: 같은 초에 발급된 토큰도 서로 달라야 refresh token 교체가 의미를 가짐
    to_encode["jti"] = uuid.uuid4().hex
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
        "type": "access",
    }
    return _encode(
        claims,
        settings.ACCESS_TOKEN_SECRET,
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    claims = {"sub": str(user.id), "type": "refresh"}
    return _encode(
        claims,
        settings.REFRESH_TOKEN_SECRET,
        expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, secret: str, token_type: str) -> int:
    """토큰을 검증하고 user id를 반환합니다. 서명/만료/타입이 맞지 않으면 JWTError."""
    payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != token_type:
        raise JWTError(f"Expected {token_type} token")
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        return int(subject)
    except ValueError:
        raise JWTError("Token subject is not a user id")


def _extract_access_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def _resolve_user(token: str, db: Session) -> User:
    try:
        user_id = decode_token(token, settings.ACCESS_TOKEN_SECRET, "access")
    except JWTError as e:
        logger.debug(f"Access token rejected: {e}")
        raise AuthError("Invalid access token")

    user = db.get(User, user_id)
    if user is None:
        raise AuthError("Invalid access token")
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    현재 인증된 사용자를 반환합니다.
    Authorization 헤더(Bearer) 또는 accessToken 쿠키에서 토큰을 읽습니다.
    """
    token = _extract_access_token(request)
    if not token:
        raise AuthError("Unauthorized request")
    return _resolve_user(token, db)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """인증이 선택 사항인 엔드포인트용. 토큰이 없거나 유효하지 않으면 익명(None)으로 처리."""
    token = _extract_access_token(request)
    if not token:
        return None
    try:
        return _resolve_user(token, db)
    except AuthError:
        return None


def _cookie_options() -> dict:
    return {
        "samesite": "strict",
        "path": "/",
        "secure": settings.secure_cookies,
    }


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = _cookie_options()
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **options)


def clear_auth_cookies(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
