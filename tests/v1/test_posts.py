# tests/v1/test_posts.py
"""Tests for post endpoints."""

from fastapi import status

from forum_content.core.security import create_access_token
from forum_content.models import PostStatus


def test_create_draft(client, owner, headers_for) -> None:
    response = client.post(
        "/api/v1/posts/",
        data={"title": "Draft", "content": ""},
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "unpublished"
    assert data["owner_id"] == owner.user_id
    assert data["version"] == 1


def test_create_published_with_files(client, owner, headers_for, file_service) -> None:
    response = client.post(
        "/api/v1/posts/",
        data={"title": "Hello", "content": "World", "publish": "true"},
        files=[
            ("images", ("a.png", b"png-bytes", "image/png")),
            ("attachments", ("doc.pdf", b"pdf-bytes", "application/pdf")),
        ],
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "published"
    assert data["content"] == "World"
    assert data["image_refs"] == ["https://files.test/1"]
    assert data["attachment_refs"] == ["https://files.test/2"]


def test_create_published_without_body_is_rejected(client, owner, headers_for) -> None:
    response = client.post(
        "/api/v1/posts/",
        data={"title": "Hello", "publish": "true"},
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "title and body are required to publish"
    assert body["error"]["status_code"] == 400
    assert "timestamp" in body["error"]


def test_upload_failure_is_503(client, owner, headers_for, file_service) -> None:
    file_service.fail_on_upload = 2
    response = client.post(
        "/api/v1/posts/",
        data={"title": "t", "content": "b"},
        files=[
            ("images", ("a.png", b"1", "image/png")),
            ("attachments", ("b.pdf", b"2", "application/pdf")),
        ],
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert file_service.deleted == ["https://files.test/1"]


def test_create_requires_token(client) -> None:
    response = client.post("/api/v1/posts/", data={"title": "t"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_invalid_token_is_rejected(client) -> None:
    response = client.get("/api/v1/posts/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_posts_for_guest_and_admin(client, make_post, admin, headers_for) -> None:
    make_post()
    make_post(status=PostStatus.BANNED)
    make_post(status=PostStatus.HIDDEN)

    guest_view = client.get("/api/v1/posts/")
    assert guest_view.status_code == status.HTTP_200_OK
    assert [p["status"] for p in guest_view.json()["items"]] == ["published"]

    admin_view = client.get("/api/v1/posts/", headers=headers_for(admin))
    assert admin_view.json()["pagination"]["total"] == 2

    banned_only = client.get("/api/v1/posts/?status=banned", headers=headers_for(admin))
    assert [p["status"] for p in banned_only.json()["items"]] == ["banned"]


def test_list_hidden_posts_through_general_listing_is_empty(
    client, make_post, owner, headers_for
) -> None:
    make_post(status=PostStatus.HIDDEN)
    response = client.get("/api/v1/posts/?status=hidden", headers=headers_for(owner))
    assert response.json()["items"] == []


def test_my_drafts_and_top(client, make_post, owner, headers_for) -> None:
    make_post(status=PostStatus.UNPUBLISHED)
    make_post(reply_count=3)

    drafts = client.get("/api/v1/posts/me/drafts", headers=headers_for(owner))
    assert drafts.status_code == status.HTTP_200_OK
    assert [p["status"] for p in drafts.json()["items"]] == ["unpublished"]

    top = client.get("/api/v1/posts/me/top", headers=headers_for(owner))
    assert [p["reply_count"] for p in top.json()] == [3]

    assert client.get("/api/v1/posts/me/drafts").status_code == status.HTTP_401_UNAUTHORIZED


def test_my_hidden_posts(client, make_post, owner, other_user, headers_for) -> None:
    hidden = make_post(status=PostStatus.HIDDEN)
    make_post(status=PostStatus.HIDDEN, owner_id=other_user.user_id)

    response = client.get("/api/v1/posts/me/hidden", headers=headers_for(owner))
    assert response.status_code == status.HTTP_200_OK
    assert [p["id"] for p in response.json()["items"]] == [hidden.id]
    assert response.json()["pagination"]["total"] == 1

    assert client.get("/api/v1/posts/me/hidden").status_code == status.HTTP_401_UNAUTHORIZED



def test_get_post_detail_includes_replies(
    client, make_post, make_reply, headers_for, other_user, user_service
) -> None:
    user_service.users["replier-1"] = {"user_id": "replier-1", "first_name": "Rae"}
    post = make_post()
    make_reply(post)

    response = client.get(f"/api/v1/posts/{post.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["post"]["id"] == post.id
    assert len(data["replies"]) == 1
    assert data["replies"][0]["author"]["first_name"] == "Rae"
    assert data["pagination"]["total"] == 1


def test_get_post_detail_survives_user_directory_outage(
    client, make_post, make_reply, user_service
) -> None:
    user_service.fail = True
    post = make_post()
    make_reply(post)
    response = client.get(f"/api/v1/posts/{post.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["replies"][0]["author"] is None


def test_hidden_post_is_404_for_others(client, make_post, other_user, headers_for) -> None:
    post = make_post(status=PostStatus.HIDDEN)
    assert client.get(f"/api/v1/posts/{post.id}").status_code == status.HTTP_404_NOT_FOUND
    response = client.get(f"/api/v1/posts/{post.id}", headers=headers_for(other_user))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_post(client, make_post, owner, other_user, headers_for) -> None:
    post = make_post()
    response = client.put(
        f"/api/v1/posts/{post.id}",
        json={"title": "Edited", "expected_version": 1},
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Edited"
    assert response.json()["version"] == 2

    stale = client.put(
        f"/api/v1/posts/{post.id}",
        json={"title": "Again", "expected_version": 1},
        headers=headers_for(owner),
    )
    assert stale.status_code == status.HTTP_409_CONFLICT

    forbidden = client.put(
        f"/api/v1/posts/{post.id}", json={"title": "x"}, headers=headers_for(other_user)
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN


def test_add_files(client, make_post, owner, headers_for) -> None:
    post = make_post()
    response = client.post(
        f"/api/v1/posts/{post.id}/files",
        files=[("images", ("c.png", b"c", "image/png"))],
        headers=headers_for(owner),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["image_refs"] == ["https://files.test/1"]


def test_status_endpoints(client, make_post, owner, admin, headers_for) -> None:
    post = make_post(status=PostStatus.UNPUBLISHED)
    url = f"/api/v1/posts/{post.id}"

    assert client.patch(f"{url}/publish", headers=headers_for(owner)).json()["status"] == "published"
    assert client.patch(f"{url}/hide", headers=headers_for(owner)).json()["status"] == "hidden"
    assert client.patch(f"{url}/unhide", headers=headers_for(owner)).json()["status"] == "published"

    banned = client.patch(f"{url}/ban", json={"reason": "spam"}, headers=headers_for(admin))
    assert banned.status_code == status.HTTP_200_OK
    assert banned.json()["banned_reason"] == "spam"

    assert client.patch(f"{url}/unban", headers=headers_for(admin)).json()["banned_at"] is None


def test_status_denials(client, make_post, owner, other_user, admin, headers_for) -> None:
    post = make_post()
    url = f"/api/v1/posts/{post.id}"

    ban_by_owner = client.patch(f"{url}/ban", headers=headers_for(owner))
    assert ban_by_owner.status_code == status.HTTP_403_FORBIDDEN

    hide_by_other = client.patch(f"{url}/hide", headers=headers_for(other_user))
    assert hide_by_other.status_code == status.HTTP_403_FORBIDDEN

    recover_published = client.patch(f"{url}/recover", headers=headers_for(admin))
    assert recover_published.status_code == status.HTTP_403_FORBIDDEN
    assert recover_published.json()["error"]["message"] == (
        "cannot transition from published to published"
    )

    unknown = client.patch(f"{url}/promote", headers=headers_for(owner))
    assert unknown.status_code == 422


def test_superadmin_claim_acts_as_admin(client, make_post) -> None:
    post = make_post()
    token = create_access_token("root-1", "superadmin")
    response = client.patch(
        f"/api/v1/posts/{post.id}/ban", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == status.HTTP_200_OK


def test_delete_and_recover(client, make_post, owner, admin, headers_for) -> None:
    post = make_post()
    deleted = client.delete(f"/api/v1/posts/{post.id}", headers=headers_for(owner))
    assert deleted.json()["status"] == "deleted"

    # Owner can still see their deleted post, but not edit it.
    assert client.get(f"/api/v1/posts/{post.id}", headers=headers_for(owner)).status_code == 200
    edit = client.put(
        f"/api/v1/posts/{post.id}", json={"title": "x"}, headers=headers_for(owner)
    )
    assert edit.status_code == status.HTTP_403_FORBIDDEN

    recovered = client.patch(f"/api/v1/posts/{post.id}/recover", headers=headers_for(admin))
    assert recovered.json()["status"] == "published"
    assert recovered.json()["deleted_at"] is None


def test_reply_and_archive_toggles(client, make_post, owner, headers_for) -> None:
    post = make_post()
    url = f"/api/v1/posts/{post.id}"
    assert client.patch(f"{url}/disable-replies", headers=headers_for(owner)).json()[
        "replies_disabled"
    ]
    assert not client.patch(f"{url}/enable-replies", headers=headers_for(owner)).json()[
        "replies_disabled"
    ]
    assert client.patch(f"{url}/archive", headers=headers_for(owner)).json()["is_archived"]


def test_missing_post_is_404(client, owner, headers_for) -> None:
    response = client.patch("/api/v1/posts/missing/publish", headers=headers_for(owner))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["message"] == "post not found"
