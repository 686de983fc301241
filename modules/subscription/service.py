import logging
from sqlalchemy.orm import Session
from core.exceptions import NotFoundError
from models.user import User
from modules.user.repository import UserRepository
from schemas.subscription import ChannelSubscribers, SubscribedChannels
from schemas.user import UserSummary
from .repository import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, db: Session):
        self.repository = SubscriptionRepository(db)
        self.user_repository = UserRepository(db)

    def toggle_subscription(self, subscriber: User, channel_id: int) -> bool:
        """
        구독 중이면 구독을 취소(False), 아니면 구독(True)합니다.
        확인 후 변경하는 방식이라 같은 요청이 동시에 오면 경합이 생길 수 있으며,
        중복 구독은 DB 유니크 제약으로 막습니다.
        """
        if self.user_repository.get_by_id(channel_id) is None:
            raise NotFoundError("Channel not found")

        subscription = self.repository.find(subscriber.id, channel_id)
        if subscription:
            self.repository.delete(subscription)
            logger.info(f"Unsubscribed: subscriber={subscriber.id} channel={channel_id}")
            return False

        if not self.repository.create(subscriber.id, channel_id):
            # 동시 요청이 먼저 구독을 만든 경우. 결과적으로 구독 상태
            logger.warning(f"Duplicate subscription ignored: subscriber={subscriber.id} channel={channel_id}")
        else:
            logger.info(f"Subscribed: subscriber={subscriber.id} channel={channel_id}")
        return True

    def get_channel_subscribers(self, channel_id: int) -> ChannelSubscribers:
        subscribers = self.repository.get_subscribers(channel_id)
        return ChannelSubscribers(
            count=len(subscribers),
            subscribers=[UserSummary.model_validate(user) for user in subscribers],
        )

    def get_subscribed_channels(self, subscriber_id: int) -> SubscribedChannels:
        channels = self.repository.get_subscribed_channels(subscriber_id)
        return SubscribedChannels(
            count=len(channels),
            channels=[UserSummary.model_validate(user) for user in channels],
        )
