import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from app.routers.auth import router as auth_router
from config.config import settings
from core.database import Database
from core.exceptions import ApiError
from modules.subscription.router import router as subscription_router
from modules.user.router import router as user_router
from modules.video.router import router as video_router
from schemas.response import ErrorResponse

# boto3 등 os.environ을 직접 읽는 라이브러리를 위해 .env를 로드
load_dotenv()
logger = logging.getLogger(__name__)


def setup_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 서버 시작 전에 DB 연결, 종료 시 연결 해제
    database: Database = app.state.database
    database.connect()
    try:
        yield
    finally:
        database.disconnect()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return ErrorResponse(status_code=exc.status_code, message=exc.message, errors=exc.errors).to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error.get("loc", [])), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return ErrorResponse(status_code=400, message="Invalid request", errors=errors).to_response()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return ErrorResponse(status_code=exc.status_code, message=str(exc.detail)).to_response()

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
        return ErrorResponse(status_code=500, message="Internal server error").to_response()


def create_app(database_url: Optional[str] = None) -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Video Platform API",
        description="""
        영상 공유 플랫폼 API

        ## 주요 기능
        * 회원가입 / 로그인 / 토큰 갱신
        * 영상 업로드, 수정, 삭제, 공개 여부 전환
        * 채널 구독 및 구독자 조회
        * 채널 프로필, 시청 기록
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.database = Database(database_url or settings.database_url, echo=settings.SQL_ECHO)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # API 라우터 등록
    app.include_router(auth_router, prefix="/users", tags=["authentication"])
    app.include_router(user_router)
    app.include_router(video_router)
    app.include_router(subscription_router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to Video Platform API",
            "docs": "/docs",
            "redoc": "/redoc",
        }

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    try:
        logger.info("서버 시작 중...")
        uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=settings.ENVIRONMENT == "development")
    except Exception as e:
        logger.error(f"서버 시작 실패: {str(e)}", exc_info=True)
