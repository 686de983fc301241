from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Server settings
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    # Database settings
    DATABASE_URL: Optional[str] = None
    DB_NAME: str = "postgres"
    DB_USER: str = "root"
    DB_PASSWORD: str = "New1234!"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    SQL_ECHO: bool = False

    # Token settings
    ACCESS_TOKEN_SECRET: str = "change-this-access-token-secret"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = "change-this-refresh-token-secret"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALGORITHM: str = "HS256"

    # Media host (S3) settings
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""  # 환경 변수에서 로드하세요. 절대 하드코딩하지 마세요!
    AWS_REGION: str = "ap-northeast-2"
    AWS_BUCKET_NAME: str = "video-platform-media"

    # Upload settings
    UPLOAD_TEMP_DIR: str = "public/temp"
    DEFAULT_COVER_IMAGE_URL: str = (
        "https://images.unsplash.com/photo-1545486332-9e0999c535b2"
        "?q=80&w=1374&auto=format&fit=crop"
    )

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def secure_cookies(self) -> bool:
        # 로컬/개발 환경에서는 Secure 쿠키를 사용하지 않음
        return self.ENVIRONMENT.lower() not in ("local", "development", "dev", "test")


settings = Settings()
