from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.routes import blogs as blogs_routes
from app.db.repo.blogs_repo import BlogsRepo
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.main import app
from tests.api.helpers import DummySessionLocal, auth_headers

AUTHOR_ID = uuid4()


def _blog(visibility: str) -> SimpleNamespace:
    created_at = datetime(2026, 4, 1, tzinfo=timezone.utc)
    return SimpleNamespace(
        id=uuid4(),
        artist_id=AUTHOR_ID,
        title="Studio diary",
        content="Week one.",
        visibility=visibility,
        images=[],
        tags=["studio"],
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def blog_env(monkeypatch) -> SimpleNamespace:
    env = SimpleNamespace(blogs={}, subscribers=set())

    async def _get_with_name(session, blog_id):
        blog = env.blogs.get(blog_id)
        return (blog, "Author") if blog is not None else None

    async def _has_active(session, *, fan_id, artist_id):
        return (fan_id, artist_id) in env.subscribers

    monkeypatch.setattr(blogs_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(BlogsRepo, "get_with_artist_name", _get_with_name)
    monkeypatch.setattr(SubscriptionsRepo, "has_active", _has_active)
    return env


def test_public_blog_is_readable_anonymously(blog_env) -> None:
    blog = _blog("PUBLIC")
    blog_env.blogs[blog.id] = blog

    response = TestClient(app).get(f"/api/blogs/{blog.id}")

    assert response.status_code == 200
    assert response.json()["title"] == "Studio diary"


def test_subscriber_blog_requires_login(blog_env) -> None:
    blog = _blog("SUBSCRIBER_ONLY")
    blog_env.blogs[blog.id] = blog

    response = TestClient(app).get(f"/api/blogs/{blog.id}")

    assert response.status_code == 403
    assert response.json()["code"] == "E_SUBSCRIBER_ONLY"


def test_subscriber_blog_is_hidden_from_non_subscribers(blog_env) -> None:
    blog = _blog("SUBSCRIBER_ONLY")
    blog_env.blogs[blog.id] = blog

    response = TestClient(app).get(f"/api/blogs/{blog.id}", headers=auth_headers())

    assert response.status_code == 403
    assert response.json()["message"] == "Subscriber access required"


def test_subscriber_blog_is_visible_to_subscriber_and_author(blog_env) -> None:
    blog = _blog("SUBSCRIBER_ONLY")
    blog_env.blogs[blog.id] = blog
    fan_id = uuid4()
    blog_env.subscribers.add((fan_id, AUTHOR_ID))
    client = TestClient(app)

    as_fan = client.get(f"/api/blogs/{blog.id}", headers=auth_headers(user_id=fan_id))
    as_author = client.get(f"/api/blogs/{blog.id}", headers=auth_headers(role="artist", user_id=AUTHOR_ID))

    assert as_fan.status_code == 200
    assert as_author.status_code == 200


def test_unknown_blog_returns_404(blog_env) -> None:
    response = TestClient(app).get(f"/api/blogs/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["message"] == "Blog not found"


@pytest.fixture
def blog_writes(monkeypatch, blog_env) -> SimpleNamespace:
    writes = SimpleNamespace(uploads=[], deleted=[])

    async def _get_by_id(session, blog_id):
        return blog_env.blogs.get(blog_id)

    async def _update_fields(session, blog, values):
        for key, value in values.items():
            setattr(blog, key, value)
        return blog

    async def _delete(session, blog_id):
        writes.deleted.append(blog_id)
        return 1

    async def _get_artist(session, user_id):
        return (SimpleNamespace(id=user_id), SimpleNamespace())

    async def _upload_images(files, *, folder, prefix):
        writes.uploads.append(len(files))
        return [f"https://media.example/new_{index}.jpg" for index in range(len(files))]

    monkeypatch.setattr(blogs_routes, "upload_images", _upload_images)
    monkeypatch.setattr(BlogsRepo, "get_by_id", _get_by_id)
    monkeypatch.setattr(BlogsRepo, "update_fields", _update_fields)
    monkeypatch.setattr(BlogsRepo, "delete", _delete)
    monkeypatch.setattr(UsersRepo, "get_artist", _get_artist)
    return writes


def _author_headers() -> dict[str, str]:
    return auth_headers(role="artist", user_id=AUTHOR_ID, name="Author")


def test_create_with_too_many_images_is_rejected(blog_writes) -> None:
    response = TestClient(app).post(
        "/api/blogs",
        data={"data": json.dumps({"title": "Tour recap", "content": "Eleven cities."})},
        files=[("images", (f"{i}.png", b"\x89PNG", "image/png")) for i in range(11)],
        headers=_author_headers(),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "At most 10 files allowed for 'images'"
    assert blog_writes.uploads == []


def test_update_appends_uploaded_images(blog_env, blog_writes) -> None:
    blog = _blog("PUBLIC")
    blog.images = ["https://media.example/old.jpg"]
    blog_env.blogs[blog.id] = blog

    response = TestClient(app).patch(
        f"/api/blogs/{blog.id}",
        data={"data": json.dumps({"tags": "studio, mixing"})},
        files=[("images", ("new.png", b"\x89PNG", "image/png"))],
        headers=_author_headers(),
    )

    assert response.status_code == 200
    assert response.json()["images"] == ["https://media.example/old.jpg", "https://media.example/new_0.jpg"]
    assert response.json()["tags"] == ["studio", "mixing"]


def test_other_artist_cannot_update_or_delete_blog(blog_env, blog_writes) -> None:
    blog = _blog("PUBLIC")
    blog_env.blogs[blog.id] = blog
    headers = auth_headers(role="artist", user_id=uuid4())
    client = TestClient(app)

    patched = client.patch(f"/api/blogs/{blog.id}", json={"title": "Mine now"}, headers=headers)
    deleted = client.delete(f"/api/blogs/{blog.id}", headers=headers)

    assert patched.status_code == 403
    assert patched.json()["message"] == "Not authorized to modify this blog"
    assert deleted.status_code == 403
    assert blog.title == "Studio diary"
    assert blog_writes.deleted == []


def test_missing_blog_update_and_delete_return_404(blog_writes) -> None:
    client = TestClient(app)

    patched = client.patch(f"/api/blogs/{uuid4()}", json={"title": "Ghost"}, headers=_author_headers())
    deleted = client.delete(f"/api/blogs/{uuid4()}", headers=_author_headers())

    assert patched.status_code == 404
    assert deleted.status_code == 404
    assert blog_writes.deleted == []


def test_author_delete(blog_env, blog_writes) -> None:
    blog = _blog("PUBLIC")
    blog_env.blogs[blog.id] = blog

    response = TestClient(app).delete(f"/api/blogs/{blog.id}", headers=_author_headers())

    assert response.status_code == 200
    assert response.json() == {"message": "Blog deleted successfully"}
    assert blog_writes.deleted == [blog.id]
