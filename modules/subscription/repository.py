from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.subscription import Subscription
from models.user import User


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, subscriber_id: int, channel_id: int) -> Optional[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id)
            .first()
        )

    def create(self, subscriber_id: int, channel_id: int) -> bool:
        """구독을 추가합니다. (subscriber, channel) 유니크 제약에 걸리면 False"""
        self.db.add(Subscription(subscriber_id=subscriber_id, channel_id=channel_id))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        return True

    def delete(self, subscription: Subscription) -> None:
        self.db.delete(subscription)
        self.db.commit()

    def get_subscribers(self, channel_id: int) -> List[User]:
        return (
            self.db.query(User)
            .join(Subscription, Subscription.subscriber_id == User.id)
            .filter(Subscription.channel_id == channel_id)
            .order_by(Subscription.id)
            .all()
        )

    def get_subscribed_channels(self, subscriber_id: int) -> List[User]:
        return (
            self.db.query(User)
            .join(Subscription, Subscription.channel_id == User.id)
            .filter(Subscription.subscriber_id == subscriber_id)
            .order_by(Subscription.id)
            .all()
        )
