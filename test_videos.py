import os

import pytest

from config.config import settings
from modules.user.repository import UserRepository


def test_publish_video(api, fake_s3):
    user, headers = api.signup("alice")

    response = api.publish(headers)

    assert response.status_code == 200
    video = response.json()["data"]
    assert video["title"] == "My first video"
    assert video["duration"] == 12.5
    assert video["views"] == 0
    assert video["isPublished"] is True
    assert video["ownerId"] == user["id"]
    assert video["videoFile"].endswith(".mp4")
    assert video["thumbnail"].startswith("https://test-bucket.s3.us-east-1.amazonaws.com/")
    # 아바타 + 썸네일 + 영상
    assert len(fake_s3.objects) == 3
    # 업로드가 끝난 임시 파일은 남지 않음
    assert os.listdir(settings.UPLOAD_TEMP_DIR) == []


def test_publish_as_draft(api):
    _, headers = api.signup("bob")

    video = api.publish(headers, is_published=False).json()["data"]

    assert video["isPublished"] is False


def test_publish_requires_authentication(api):
    response = api.publish(headers={})

    assert response.status_code == 401


def test_publish_requires_title_and_files(api, client):
    _, headers = api.signup("carol")

    no_title = api.publish(headers, title="")
    no_files = client.post("/videos", data={"title": "t", "description": "d"}, headers=headers)

    assert no_title.status_code == 400
    assert no_title.json()["message"] == "All fields are required"
    assert no_files.status_code == 400
    assert no_files.json()["message"] == "Please provide thumbnail and video"


def test_publish_fails_when_media_upload_fails(api, fake_s3):
    _, headers = api.signup("dave")
    fake_s3.fail_uploads = True

    response = api.publish(headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_get_video_counts_views_and_history_once(api, client):
    _, headers = api.signup("erin")
    video_id = api.publish(headers).json()["data"]["id"]

    first = client.get(f"/videos/{video_id}", headers=headers)
    second = client.get(f"/videos/{video_id}", headers=headers)

    assert first.status_code == 200
    assert first.json()["data"]["views"] == 1
    assert second.json()["data"]["views"] == 2
    assert first.json()["data"]["owner"]["username"] == "erin"

    history = client.get("/users/history", headers=headers).json()["data"]
    assert [video["id"] for video in history] == [video_id]


def test_anonymous_view_counts_without_history(api, client):
    _, headers = api.signup("frank")
    video_id = api.publish(headers).json()["data"]["id"]

    response = client.get(f"/videos/{video_id}")

    assert response.json()["data"]["views"] == 1
    assert client.get("/users/history", headers=headers).json()["data"] == []


def test_get_missing_video_is_not_found(client):
    response = client.get("/videos/999")

    assert response.status_code == 404
    assert response.json()["message"] == "Video not found"


def test_get_video_unexpected_failure_is_internal_error(api, client, monkeypatch):
    _, headers = api.signup("tina")
    video_id = api.publish(headers).json()["data"]["id"]

    def broken_history(self, user_id, video_id):
        raise RuntimeError("watch_history table is locked")

    monkeypatch.setattr(UserRepository, "add_to_watch_history", broken_history)

    response = client.get(f"/videos/{video_id}", headers=headers)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Failed to fetch video"
    assert body["errors"] == []
    assert "locked" not in response.text


def test_get_video_with_invalid_id_is_validation_error(client):
    response = client.get("/videos/not-a-number")

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_list_videos_rejects_unknown_sort_type(client):
    response = client.get("/videos", params={"sortType": "up"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid sort type"


def test_list_videos_rejects_unknown_sort_field(client):
    response = client.get("/videos", params={"sortBy": "password"})

    assert response.status_code == 400


@pytest.mark.parametrize("sort_by", ["id", "thumbnail", "videoFile", "owner", "duration"])
def test_list_videos_sortable_by_any_video_field(api, client, sort_by):
    _, headers = api.signup("uma")
    api.publish(headers)

    response = client.get("/videos", params={"sortBy": sort_by, "sortType": "asc"})

    assert response.status_code == 200
    assert response.json()["data"]["totalVideos"] == 1


def test_list_videos_empty_result_has_one_page(client):
    data = client.get("/videos").json()["data"]

    assert data["videos"] == []
    assert data["totalVideos"] == 0
    assert data["totalPages"] == 1
    assert data["currentPage"] == 1


def test_list_videos_search_filter_and_pagination(api, client):
    alice, alice_headers = api.signup("alice")
    _, bob_headers = api.signup("bob")
    api.publish(alice_headers, title="Cooking Pasta", description="dinner")
    api.publish(alice_headers, title="Morning run", description="Fitness vlog")
    api.publish(bob_headers, title="Pasta review", description="food")

    search = client.get("/videos", params={"query": "PASTA"}).json()["data"]
    assert search["totalVideos"] == 2
    assert {video["title"] for video in search["videos"]} == {"Cooking Pasta", "Pasta review"}

    by_description = client.get("/videos", params={"query": "fitness"}).json()["data"]
    assert [video["title"] for video in by_description["videos"]] == ["Morning run"]

    by_owner = client.get("/videos", params={"userId": alice["id"]}).json()["data"]
    assert by_owner["totalVideos"] == 2
    assert all(video["owner"]["username"] == "alice" for video in by_owner["videos"])

    page = client.get("/videos", params={"page": 2, "limit": 2, "sortBy": "title", "sortType": "asc"}).json()["data"]
    assert page["totalVideos"] == 3
    assert page["totalPages"] == 2
    assert page["currentPage"] == 2
    assert [video["title"] for video in page["videos"]] == ["Pasta review"]


def test_list_videos_sorted_by_views(api, client):
    _, headers = api.signup("gina")
    quiet = api.publish(headers, title="quiet").json()["data"]["id"]
    popular = api.publish(headers, title="popular").json()["data"]["id"]
    client.get(f"/videos/{popular}")
    client.get(f"/videos/{popular}")
    client.get(f"/videos/{quiet}")

    videos = client.get("/videos", params={"sortBy": "views", "sortType": "DESC"}).json()["data"]["videos"]

    assert [video["title"] for video in videos] == ["popular", "quiet"]


def test_update_video_by_owner_replaces_thumbnail(api, client, fake_s3, media):
    _, headers = api.signup("henry")
    video = api.publish(headers).json()["data"]
    old_key = media.public_id_from_url(video["thumbnail"])

    response = client.patch(
        f"/videos/{video['id']}",
        data={"title": "New title", "description": "New description"},
        files={"thumbnail": ("new.png", b"new-thumbnail", "image/png")},
        headers=headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["title"] == "New title"
    assert updated["thumbnail"] != video["thumbnail"]
    assert old_key in fake_s3.deleted
    assert media.public_id_from_url(updated["thumbnail"]) in fake_s3.objects


def test_update_video_requires_title_and_description(api, client):
    _, headers = api.signup("ivan")
    video_id = api.publish(headers).json()["data"]["id"]

    response = client.patch(f"/videos/{video_id}", data={"title": "only title"}, headers=headers)

    assert response.status_code == 400


def test_update_video_by_other_user_is_forbidden(api, client):
    _, owner_headers = api.signup("judy")
    _, other_headers = api.signup("kate")
    video_id = api.publish(owner_headers).json()["data"]["id"]

    response = client.patch(
        f"/videos/{video_id}",
        data={"title": "hijacked", "description": "nope"},
        headers=other_headers,
    )

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_delete_video_by_other_user_leaves_everything(api, client, fake_s3):
    _, owner_headers = api.signup("leo")
    _, other_headers = api.signup("mia")
    video_id = api.publish(owner_headers).json()["data"]["id"]
    objects_before = dict(fake_s3.objects)

    response = client.delete(f"/videos/{video_id}", headers=other_headers)

    assert response.status_code == 403
    assert fake_s3.deleted == []
    assert fake_s3.objects == objects_before
    assert client.get(f"/videos/{video_id}").status_code == 200


def test_delete_video_removes_media_and_record(api, client, fake_s3, media):
    _, headers = api.signup("nick")
    video = api.publish(headers).json()["data"]

    response = client.delete(f"/videos/{video['id']}", headers=headers)

    assert response.status_code == 200
    assert media.public_id_from_url(video["thumbnail"]) in fake_s3.deleted
    assert media.public_id_from_url(video["videoFile"]) in fake_s3.deleted
    assert client.get(f"/videos/{video['id']}").status_code == 404


def test_delete_video_succeeds_even_if_media_cleanup_fails(api, client, fake_s3):
    _, headers = api.signup("olga")
    video_id = api.publish(headers).json()["data"]["id"]
    fake_s3.fail_deletes = True

    response = client.delete(f"/videos/{video_id}", headers=headers)

    assert response.status_code == 200
    assert client.get(f"/videos/{video_id}").status_code == 404


def test_toggle_publish_and_list_unpublished(api, client):
    _, headers = api.signup("paul")
    video_id = api.publish(headers).json()["data"]["id"]

    toggled = client.patch(f"/videos/{video_id}/toggle-publish", headers=headers)
    assert toggled.status_code == 200
    assert toggled.json()["data"]["isPublished"] is False

    unpublished = client.get("/videos/unpublished", headers=headers).json()["data"]
    assert [video["id"] for video in unpublished] == [video_id]

    client.patch(f"/videos/{video_id}/toggle-publish", headers=headers)
    assert client.get("/videos/unpublished", headers=headers).json()["data"] == []


def test_toggle_publish_by_other_user_is_forbidden(api, client):
    _, owner_headers = api.signup("quinn")
    _, other_headers = api.signup("rose")
    video_id = api.publish(owner_headers).json()["data"]["id"]

    response = client.patch(f"/videos/{video_id}/toggle-publish", headers=other_headers)

    assert response.status_code == 403


def test_video_lifecycle(api, client):
    _, alice_headers = api.signup("alice")
    _, bob_headers = api.signup("bob")
    video_id = api.publish(alice_headers).json()["data"]["id"]

    viewed = client.get(f"/videos/{video_id}", headers=alice_headers).json()["data"]
    assert viewed["views"] == 1
    history = client.get("/users/history", headers=alice_headers).json()["data"]
    assert [video["id"] for video in history] == [video_id]

    forbidden = client.patch(
        f"/videos/{video_id}",
        data={"title": "bob's now", "description": "mine"},
        headers=bob_headers,
    )
    assert forbidden.status_code == 403

    assert client.delete(f"/videos/{video_id}", headers=alice_headers).status_code == 200
    assert client.get(f"/videos/{video_id}").status_code == 404
