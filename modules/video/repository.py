from typing import List, Optional, Tuple
from sqlalchemy import or_, update
from sqlalchemy.orm import Session, selectinload
from models.video import Video


# API에서 사용하는 필드명 -> 정렬 컬럼
SORTABLE_FIELDS = {
    "id": Video.id,
    "createdAt": Video.created_at,
    "updatedAt": Video.updated_at,
    "title": Video.title,
    "description": Video.description,
    "duration": Video.duration,
    "views": Video.views,
    "isPublished": Video.is_published,
    "thumbnail": Video.thumbnail,
    "videoFile": Video.video_file,
    "owner": Video.owner_id,
    "ownerId": Video.owner_id,
}


class VideoRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_video_by_id(self, video_id: int) -> Optional[Video]:
        return self.db.get(Video, video_id)

    def list_videos(
        self,
        query: str,
        owner_id: Optional[int],
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> Tuple[List[Video], int]:
        q = self.db.query(Video)
        if query:
            q = q.filter(
                or_(
                    Video.title.icontains(query, autoescape=True),
                    Video.description.icontains(query, autoescape=True),
                )
            )
        if owner_id is not None:
            q = q.filter(Video.owner_id == owner_id)

        total = q.count()

        column = SORTABLE_FIELDS[sort_by]
        order = column.desc() if descending else column.asc()
        # 정렬 값이 같을 때도 페이지가 겹치지 않도록 id로 보조 정렬
        tie_breaker = Video.id.desc() if descending else Video.id.asc()
        videos = (
            q.options(selectinload(Video.owner))
            .order_by(order, tie_breaker)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return videos, total

    def create_video(self, **fields) -> Video:
        video = Video(**fields)
        self.db.add(video)
        self.db.commit()
        self.db.refresh(video)
        return video

    def increment_views(self, video_id: int) -> Optional[Video]:
        """조회수를 DB에서 원자적으로 1 증가시키고 갱신된 영상을 반환합니다."""
        result = self.db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(views=Video.views + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount == 0:
            return None
        video = self.get_video_by_id(video_id)
        self.db.refresh(video)
        return video

    def update_video(self, video: Video, **fields) -> Video:
        for key, value in fields.items():
            if hasattr(video, key):
                setattr(video, key, value)
        self.db.commit()
        self.db.refresh(video)
        return video

    def delete_video(self, video: Video) -> None:
        self.db.delete(video)
        self.db.commit()

    def get_unpublished_by_owner(self, owner_id: int) -> List[Video]:
        return (
            self.db.query(Video)
            .filter(Video.owner_id == owner_id, Video.is_published.is_(False))
            .order_by(Video.id.desc())
            .all()
        )
