from typing import List
from schemas.user import CamelModel, UserSummary


class ChannelSubscribers(CamelModel):
    count: int = 0
    subscribers: List[UserSummary] = []


class SubscribedChannels(CamelModel):
    count: int = 0
    channels: List[UserSummary] = []
