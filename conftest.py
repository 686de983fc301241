import os
import tempfile

# 설정 객체가 만들어지기 전에 테스트 환경 변수를 지정해야 함
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_TEMP_DIR"] = tempfile.mkdtemp(prefix="video-platform-test-")
os.environ["AWS_BUCKET_NAME"] = "test-bucket"
os.environ["AWS_REGION"] = "us-east-1"

import ffmpeg
import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from main import create_app
from utils.s3_client import MediaStorage, get_media_storage

DEFAULT_PASSWORD = "password123"


class FakeS3Client:
    """put_object / delete_object만 흉내내는 in-memory S3 클라이언트"""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_uploads:
            raise ClientError({"Error": {"Code": "500", "Message": "upload failed"}}, "PutObject")
        self.objects[Key] = Body

    def delete_object(self, Bucket, Key):
        if self.fail_deletes:
            raise ClientError({"Error": {"Code": "500", "Message": "delete failed"}}, "DeleteObject")
        self.deleted.append(Key)
        self.objects.pop(Key, None)


class ApiHelper:
    def __init__(self, client: TestClient, media: MediaStorage):
        self.client = client
        self.media = media

    def register(self, username, email=None, password=DEFAULT_PASSWORD, full_name=None, cover_image=False):
        files = {"avatar": ("avatar.png", b"avatar-bytes", "image/png")}
        if cover_image:
            files["coverImage"] = ("cover.jpg", b"cover-bytes", "image/jpeg")
        data = {
            "username": username,
            "email": email or f"{username.lower()}@example.com",
            "password": password,
            "fullName": full_name or f"{username} Tester",
        }
        return self.client.post("/users/register", data=data, files=files)

    def login(self, identifier, password=DEFAULT_PASSWORD):
        response = self.client.post("/users/login", json={"identifier": identifier, "password": password})
        assert response.status_code == 200, response.text
        # 테스트에서는 헤더로 사용자를 명시하므로 쿠키는 비움
        self.client.cookies.clear()
        return response.json()["data"]

    def signup(self, username):
        user = self.register(username).json()["data"]
        tokens = self.login(username)
        return user, {"Authorization": f"Bearer {tokens['accessToken']}"}

    def publish(self, headers, title="My first video", description="A video about testing", is_published=None):
        data = {"title": title, "description": description}
        if is_published is not None:
            data["isPublished"] = "true" if is_published else "false"
        files = {
            "thumbnail": ("thumb.png", b"thumbnail-bytes", "image/png"),
            "videoFile": ("clip.mp4", b"video-bytes", "video/mp4"),
        }
        return self.client.post("/videos", data=data, files=files, headers=headers)


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def media(fake_s3, monkeypatch):
    monkeypatch.setattr(ffmpeg, "probe", lambda path: {"format": {"duration": "12.5"}})
    return MediaStorage(fake_s3, "test-bucket", "us-east-1")


@pytest.fixture
def app(media):
    application = create_app("sqlite://")
    application.dependency_overrides[get_media_storage] = lambda: media
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api(client, media):
    return ApiHelper(client, media)


@pytest.fixture
def session_scope(app, client):
    return app.state.database.session_scope
