import os
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config.config import settings


def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def save_upload_to_temp(upload: Optional[UploadFile]) -> Optional[str]:
    """업로드된 파일을 임시 디렉토리에 저장하고 경로를 반환합니다."""
    if not has_file(upload):
        return None

    upload_dir = settings.UPLOAD_TEMP_DIR
    os.makedirs(upload_dir, exist_ok=True)

    # 원본 파일명이 겹쳐도 덮어쓰지 않도록 uuid를 붙임
    filename = f"{uuid.uuid4().hex}_{Path(upload.filename).name}"
    file_path = os.path.join(upload_dir, filename)

    with open(file_path, "wb") as f:
        shutil.copyfileobj(upload.file, f)

    return file_path
