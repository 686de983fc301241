from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from core.database import get_db
from models.user import User
from schemas.response import ApiResponse
from schemas.video import Video, VideoListParams, VideoWithOwner
from utils.auth import get_current_user, get_optional_user
from utils.s3_client import MediaStorage, get_media_storage
from .service import VideoService

router = APIRouter(prefix="/videos", tags=["videos"])


def get_video_service(
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
) -> VideoService:
    return VideoService(db, media)


@router.get("", summary="영상 목록 조회")
def get_all_videos(
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    query: str = Query(""),
    user_id: Optional[str] = Query(None, alias="userId"),
    service: VideoService = Depends(get_video_service),
):
    """검색어(제목/설명), 업로더, 정렬, 페이지네이션을 지원합니다."""
    params = VideoListParams(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_type=sort_type,
        query=query,
        # 잘못된 userId는 필터 없이 무시
        user_id=int(user_id) if user_id and user_id.isdigit() else None,
    )
    result = service.list_videos(params)
    return ApiResponse(message="Videos fetched successfully", data=result).to_response()


@router.post("", summary="영상 게시")
def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    is_published: Optional[bool] = Form(None, alias="isPublished"),
    thumbnail: Optional[UploadFile] = File(None),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.publish_video(
        owner=current_user,
        title=title,
        description=description,
        thumbnail=thumbnail,
        video_file=video_file,
        is_published=is_published,
    )
    return ApiResponse(message="Video published successfully", data=Video.model_validate(video)).to_response()


@router.get("/unpublished", summary="비공개 영상 목록")
def get_unpublished_videos(
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    videos: List[Video] = [Video.model_validate(v) for v in service.get_unpublished_videos(current_user)]
    return ApiResponse(message="Unpublished videos retrieved successfully", data=videos).to_response()


@router.get("/{video_id}", summary="영상 조회")
def get_video(
    video_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.get_video(video_id, viewer)
    return ApiResponse(message="Video fetched successfully", data=VideoWithOwner.model_validate(video)).to_response()


@router.patch("/{video_id}", summary="영상 정보 수정")
def update_video(
    video_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    """
    제목과 설명은 필수이며, 썸네일을 함께 보내면 기존 썸네일을 교체합니다.
    """
    video = service.update_video(video_id, current_user, title, description, thumbnail)
    return ApiResponse(message="Video updated successfully", data=Video.model_validate(video)).to_response()


@router.delete("/{video_id}", status_code=status.HTTP_200_OK, summary="영상 삭제")
def delete_video(
    video_id: int,
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    service.delete_video(video_id, current_user)
    return ApiResponse(message="Video deleted successfully").to_response()


@router.patch("/{video_id}/toggle-publish", summary="공개 여부 전환")
def toggle_publish_status(
    video_id: int,
    current_user: User = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.toggle_publish_status(video_id, current_user)
    return ApiResponse(message="Video status updated successfully", data=Video.model_validate(video)).to_response()
