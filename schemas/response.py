from typing import Any, List, Optional
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """모든 성공 응답에 사용하는 envelope"""

    status_code: int = 200
    message: str = "Success"
    data: Optional[Any] = None

    @property
    def success(self) -> bool:
        return self.status_code < 400

    def to_response(self) -> JSONResponse:
        content = {
            "statusCode": self.status_code,
            "success": self.success,
            "message": self.message,
            "data": jsonable_encoder(self.data, by_alias=True),
        }
        return JSONResponse(status_code=self.status_code, content=content)


class ErrorResponse(BaseModel):
    status_code: int
    message: str
    errors: List[Any] = []

    def to_response(self) -> JSONResponse:
        content = {
            "statusCode": self.status_code,
            "success": False,
            "message": self.message,
            "errors": jsonable_encoder(self.errors),
        }
        return JSONResponse(status_code=self.status_code, content=content)
