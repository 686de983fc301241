import logging
import math
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy.orm import Session

from core.exceptions import (
    ApiError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    UploadError,
    ValidationError,
)
from models.user import User
from models.video import Video
from modules.user.repository import UserRepository
from schemas.video import VideoListParams, VideoPage, VideoWithOwner
from utils.files import has_file, save_upload_to_temp
from utils.s3_client import MediaStorage
from .repository import SORTABLE_FIELDS, VideoRepository

logger = logging.getLogger(__name__)

SORT_TYPES = ("asc", "desc")


class VideoService:
    def __init__(self, db: Session, media: Optional[MediaStorage] = None):
        self.repository = VideoRepository(db)
        self.user_repository = UserRepository(db)
        self.media = media

    def list_videos(self, params: VideoListParams) -> VideoPage:
        sort_type = (params.sort_type or "").lower()
        if sort_type not in SORT_TYPES:
            raise ValidationError("Invalid sort type")
        if params.sort_by not in SORTABLE_FIELDS:
            raise ValidationError("Invalid sort field")
        if params.page < 1 or params.limit < 1:
            raise ValidationError("Page and limit must be positive")

        videos, total = self.repository.list_videos(
            query=params.query or "",
            owner_id=params.user_id,
            sort_by=params.sort_by,
            descending=sort_type == "desc",
            offset=(params.page - 1) * params.limit,
            limit=params.limit,
        )
        return VideoPage(
            videos=[VideoWithOwner.model_validate(video) for video in videos],
            total_videos=total,
            # 결과가 없어도 페이지는 1개
            total_pages=max(1, math.ceil(total / params.limit)),
            current_page=params.page,
        )

    def publish_video(
        self,
        owner: User,
        title: Optional[str],
        description: Optional[str],
        thumbnail: Optional[UploadFile],
        video_file: Optional[UploadFile],
        is_published: Optional[bool] = None,
    ) -> Video:
        if not title or not description:
            raise ValidationError("All fields are required")

        if not has_file(thumbnail) or not has_file(video_file):
            raise ValidationError("Please provide thumbnail and video")

        thumbnail_upload = self.media.upload_file(save_upload_to_temp(thumbnail))
        video_upload = self.media.upload_file(save_upload_to_temp(video_file), resource_type="video")

        if thumbnail_upload is None or video_upload is None:
            raise UploadError("Error while uploading media")

        video = self.repository.create_video(
            title=title,
            description=description,
            duration=video_upload.duration,
            thumbnail=thumbnail_upload.url,
            video_file=video_upload.url,
            owner_id=owner.id,
            is_published=True if is_published is None else is_published,
        )
        logger.info(f"Video published: id={video.id} owner={owner.id}")
        return video

    def get_video(self, video_id: int, viewer: Optional[User]) -> Video:
        """
        영상을 조회합니다. 조회할 때마다 조회수가 1 증가하고,
        로그인한 사용자라면 시청 기록에 (중복 없이) 추가됩니다.
        """
        try:
            video = self.repository.increment_views(video_id)
            if video is None:
                raise NotFoundError("Video not found")

            if viewer is not None:
                self.user_repository.add_to_watch_history(viewer.id, video.id)

            return video
        except ApiError:
            raise
        except Exception as e:
            logger.error(f"영상 조회 실패 (video_id: {video_id}): {str(e)}", exc_info=True)
            raise InternalError("Failed to fetch video")

    def _get_owned_video(self, video_id: int, user: User) -> Video:
        video = self.repository.get_video_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")
        if video.owner_id != user.id:
            raise AuthorizationError("You are not authorized to modify this video")
        return video

    def update_video(
        self,
        video_id: int,
        user: User,
        title: Optional[str],
        description: Optional[str],
        thumbnail: Optional[UploadFile] = None,
    ) -> Video:
        if not title or not description:
            raise ValidationError("All fields are required")

        video = self._get_owned_video(video_id, user)
        fields = {"title": title, "description": description}

        if has_file(thumbnail):
            # 기존 썸네일 삭제는 best-effort
            self.media.delete_by_url(video.thumbnail)
            uploaded = self.media.upload_file(save_upload_to_temp(thumbnail))
            if uploaded is None:
                raise UploadError("Error while uploading thumbnail")
            fields["thumbnail"] = uploaded.url

        return self.repository.update_video(video, **fields)

    def delete_video(self, video_id: int, user: User) -> None:
        video = self._get_owned_video(video_id, user)

        # 원격 자산을 먼저 지우고, 실패하더라도 레코드는 삭제
        thumbnail_deleted = self.media.delete_by_url(video.thumbnail)
        video_file_deleted = self.media.delete_by_url(video.video_file)
        if not (thumbnail_deleted and video_file_deleted):
            logger.warning(f"Media cleanup incomplete for video {video_id}")

        self.repository.delete_video(video)
        logger.info(f"Video deleted: id={video_id}")

    def toggle_publish_status(self, video_id: int, user: User) -> Video:
        video = self._get_owned_video(video_id, user)
        return self.repository.update_video(video, is_published=not video.is_published)

    def get_unpublished_videos(self, user: User) -> List[Video]:
        return self.repository.get_unpublished_by_owner(user.id)
