from typing import Any, List, Optional


class ApiError(Exception):
    """API 에러의 기본 클래스. 예외 핸들러가 에러 응답 envelope으로 변환합니다."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        errors: Optional[List[Any]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class AuthorizationError(AuthError):
    status_code = 403
    default_message = "You are not authorized to perform this action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 400
    default_message = "Resource already exists"


class UploadError(ApiError):
    status_code = 400
    default_message = "Error while uploading file"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
