from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from core.database import get_db
from models.user import User
from schemas.response import ApiResponse
from utils.auth import get_current_user
from .service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


@router.post("/{channel_id}/toggle", summary="구독/구독 취소")
def toggle_subscription(
    channel_id: int,
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscribed = service.toggle_subscription(current_user, channel_id)
    message = "Subscribed successfully" if subscribed else "Unsubscribed successfully"
    return ApiResponse(message=message, data=subscribed).to_response()


@router.get("/{channel_id}/subscribers", summary="채널 구독자 목록")
def get_channel_subscribers(
    channel_id: int,
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.get_channel_subscribers(channel_id)
    return ApiResponse(message="Subscribers fetched", data=result).to_response()


@router.get("/subscriber/{subscriber_id}", summary="구독 중인 채널 목록")
def get_subscribed_channels(
    subscriber_id: int,
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.get_subscribed_channels(subscriber_id)
    return ApiResponse(message="Subscribed channels fetched", data=result).to_response()
