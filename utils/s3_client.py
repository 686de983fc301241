import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import boto3
import ffmpeg
from botocore.exceptions import BotoCoreError, ClientError

from config.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MediaUpload:
    url: str
    public_id: str
    duration: float = 0.0


class MediaStorage:
    """
    S3에 미디어 파일을 업로드/삭제합니다.
    업로드 실패 시 None을 반환하고, 삭제는 실패해도 예외를 던지지 않습니다.
    """

    def __init__(self, client, bucket_name: str, region: str):
        self.client = client
        self.bucket_name = bucket_name
        self.region = region

    @property
    def host(self) -> str:
        return f"{self.bucket_name}.s3.{self.region}.amazonaws.com"

    def url_for(self, key: str) -> str:
        return f"https://{self.host}/{key}"

    def public_id_from_url(self, url: Optional[str]) -> Optional[str]:
        """이 버킷의 객체 URL이면 S3 key를 반환하고, 아니면 None"""
        if not url:
            return None
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or parsed.netloc != self.host:
            return None
        key = parsed.path.lstrip("/")
        return key or None

    def probe_duration(self, local_path: str) -> float:
        try:
            probe = ffmpeg.probe(local_path)
            return float(probe["format"]["duration"])
        except (ffmpeg.Error, FileNotFoundError, KeyError, ValueError) as e:
            logger.warning(f"영상 길이 확인 실패 ({local_path}): {e}")
            return 0.0

    def upload_file(self, local_path: Optional[str], resource_type: str = "image") -> Optional[MediaUpload]:
        """
        로컬 임시 파일을 S3에 업로드합니다.
        성공/실패와 관계없이 임시 파일은 삭제됩니다.
        """
        if not local_path:
            return None

        try:
            duration = self.probe_duration(local_path) if resource_type == "video" else 0.0
            key = f"{uuid.uuid4().hex}{Path(local_path).suffix.lower()}"
            content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"

            with open(local_path, "rb") as f:
                self.client.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=f.read(),
                    ContentType=content_type,
                )

            logger.info(f"S3 업로드 성공: {key}")
            return MediaUpload(url=self.url_for(key), public_id=key, duration=duration)
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error(f"S3 업로드 에러: {e}")
            return None
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)

    def delete_file(self, public_id: Optional[str]) -> bool:
        if not public_id:
            return False
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=public_id)
            logger.info(f"S3 파일 삭제 성공: {public_id}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 삭제 에러: {e}")
            return False

    def delete_by_url(self, url: Optional[str]) -> bool:
        public_id = self.public_id_from_url(url)
        if public_id is None:
            # 이 버킷의 자산이 아니면 삭제하지 않음
            logger.debug(f"S3 삭제 건너뜀 (key 없음): {url}")
            return False
        return self.delete_file(public_id)


@lru_cache(maxsize=1)
def get_media_storage() -> MediaStorage:
    s3_client = boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=settings.AWS_REGION,
    )
    return MediaStorage(s3_client, settings.AWS_BUCKET_NAME, settings.AWS_REGION)
