from typing import List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from models.user import User
from models.video import Video
from models.subscription import Subscription
from models.watch_history import WatchHistoryEntry


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        return self.db.query(User).filter(or_(User.username == username, User.email == email)).first()

    def create_user(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_user(self, user: User, **fields) -> User:
        for key, value in fields.items():
            if hasattr(user, key):
                setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def set_refresh_token(self, user: User, refresh_token: Optional[str]) -> None:
        # 이전 값을 덮어써서 기존 세션을 무효화
        user.refresh_token = refresh_token
        self.db.commit()

    def add_to_watch_history(self, user_id: int, video_id: int) -> bool:
        """이미 기록에 있으면 추가하지 않음. 추가되었으면 True"""
        exists = (
            self.db.query(WatchHistoryEntry.id)
            .filter(WatchHistoryEntry.user_id == user_id, WatchHistoryEntry.video_id == video_id)
            .first()
        )
        if exists:
            return False

        self.db.add(WatchHistoryEntry(user_id=user_id, video_id=video_id))
        try:
            self.db.commit()
        except IntegrityError:
            # 동시 요청이 먼저 추가한 경우
            self.db.rollback()
            return False
        return True

    def get_watch_history(self, user_id: int) -> List[Video]:
        """시청 기록을 추가된 순서대로 반환하며 각 영상의 owner를 함께 로드합니다."""
        return (
            self.db.query(Video)
            .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
            .filter(WatchHistoryEntry.user_id == user_id)
            .options(selectinload(Video.owner))
            .order_by(WatchHistoryEntry.id)
            .all()
        )

    def get_channel_profile(self, username: str, viewer_id: Optional[int]) -> Optional[Tuple[User, int, int, bool]]:
        subscribers_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        if viewer_id is not None:
            is_subscribed = (
                select(Subscription.id)
                .where(Subscription.channel_id == User.id, Subscription.subscriber_id == viewer_id)
                .correlate(User)
                .exists()
            )
        else:
            is_subscribed = None

        columns = [User, subscribers_count.label("subscribers_count"), subscribed_to_count.label("subscribed_to_count")]
        if is_subscribed is not None:
            columns.append(is_subscribed.label("is_subscribed"))

        row = self.db.query(*columns).filter(User.username == username).first()
        if row is None:
            return None

        subscribed = bool(row[3]) if is_subscribed is not None else False
        return row[0], int(row[1] or 0), int(row[2] or 0), subscribed
