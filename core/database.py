import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """프로세스 전체에서 공유하는 DB 연결. 서버 시작 시 connect, 종료 시 disconnect 합니다."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    def connect(self) -> None:
        if self.engine is not None:
            return

        if self.url.startswith("sqlite"):
            # 테스트용 in-memory SQLite는 모든 스레드가 하나의 연결을 공유해야 함
            engine = create_engine(
                self.url,
                echo=self.echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )

            # SQLite는 기본적으로 FK(ON DELETE CASCADE)를 적용하지 않음
            @event.listens_for(engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        else:
            engine = create_engine(
                self.url,
                pool_size=5,
                max_overflow=5,
                pool_timeout=10,
                pool_recycle=180,
                pool_pre_ping=True,
                echo=self.echo,
            )

        # 모델 모듈을 임포트해야 Base.metadata에 테이블이 등록됨
        from models import subscription, user, video, watch_history  # noqa: F401

        Base.metadata.create_all(bind=engine)
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"Database connected: {engine.url.render_as_string(hide_password=True)}")

    def disconnect(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self.SessionLocal = None
        logger.info("Database disconnected")

    def session(self) -> Session:
        if self.SessionLocal is None:
            raise RuntimeError("Database is not connected")
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        db = self.session()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


# DB 세션 의존성
def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
