from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from schemas.user import CamelModel, HistoryOwner


class VideoOwner(CamelModel):
    id: int
    username: str
    avatar: str


class VideoBase(CamelModel):
    title: str
    description: str
    duration: float
    thumbnail: str
    video_file: str
    views: int
    is_published: bool


class Video(VideoBase):
    id: int
    owner_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoWithOwner(Video):
    owner: Optional[VideoOwner] = None


class WatchedVideo(Video):
    owner: Optional[HistoryOwner] = None


class VideoPage(CamelModel):
    videos: List[VideoWithOwner]
    total_videos: int
    total_pages: int
    current_page: int


class VideoListParams(BaseModel):
    page: int = 1
    limit: int = 10
    sort_by: str = "createdAt"
    sort_type: str = "desc"
    query: str = ""
    user_id: Optional[int] = None
