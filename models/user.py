from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(1000), nullable=False)
    cover_image = Column(String(1000), nullable=True)
    password = Column(String(255), nullable=False)
    refresh_token = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 관계 설정: User -> Video (1:N)
    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    # 시청 기록은 추가된 순서대로 유지
    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User {self.username}>"
