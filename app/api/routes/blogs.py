from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request, status

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, optional_auth_user, parse_resource_id, require_role
from app.api.routes.content_request import (
    content_http_error,
    form_files,
    media_http_error,
    read_json_or_form,
    upload_images,
    validate_payload,
)
from app.api.schemas import BlogCreatePayload, BlogUpdatePayload
from app.api.serializers import blog_view
from app.content.errors import ContentError
from app.content.ownership import ensure_artist_owns
from app.core.constants import ROLE_ARTIST, VISIBILITY_SUBSCRIBER_ONLY
from app.db.models import Blog
from app.db.repo.blogs_repo import BlogsRepo
from app.db.repo.subscriptions_repo import SubscriptionsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.media_uploads import BLOGS_FOLDER, MediaUploadError

router = APIRouter(tags=["blogs"])

BLOG_RESOURCE = "Blog"
MAX_BLOG_IMAGES = 10


@router.get("/api/blogs")
async def list_blogs() -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        rows = await BlogsRepo.list_all(session)
    return [blog_view(blog, name) for blog, name in rows]


@router.get("/api/blogs/artist")
async def my_blogs(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        blogs = await BlogsRepo.list_by_artist(session, user.id)
    return [blog_view(blog, user.name) for blog in blogs]


@router.get("/api/blogs/{blog_id}")
async def get_blog(blog_id: str, viewer: AuthUser | None = Depends(optional_auth_user)) -> dict[str, Any]:
    target_id = parse_resource_id(blog_id, not_found_message="Blog not found")
    async with SessionLocal.begin() as session:
        row = await BlogsRepo.get_with_artist_name(session, target_id)
        if row is None:
            raise api_error(404, "E_NOT_FOUND", "Blog not found")
        blog, artist_name = row

        if blog.visibility == VISIBILITY_SUBSCRIBER_ONLY:
            if viewer is None:
                raise api_error(403, "E_SUBSCRIBER_ONLY", "Authentication required for subscriber content")
            is_author = viewer.id == blog.artist_id
            if not is_author and not await SubscriptionsRepo.has_active(
                session,
                fan_id=viewer.id,
                artist_id=blog.artist_id,
            ):
                raise api_error(403, "E_SUBSCRIBER_ONLY", "Subscriber access required")

    return blog_view(blog, artist_name)


@router.post("/api/blogs", status_code=status.HTTP_201_CREATED)
async def create_blog(request: Request, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, Any]:
    data, form = await read_json_or_form(request)
    payload = validate_payload(BlogCreatePayload, data)
    images = form_files(form, "images", max_count=MAX_BLOG_IMAGES)

    async with SessionLocal.begin() as session:
        if await UsersRepo.get_artist(session, user.id) is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")

    try:
        image_urls = await upload_images(images, folder=BLOGS_FOLDER, prefix="blog")
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    async with SessionLocal.begin() as session:
        blog = await BlogsRepo.create(
            session,
            blog=Blog(
                artist_id=user.id,
                title=payload.title,
                content=payload.content,
                visibility=payload.visibility,
                images=image_urls,
                tags=payload.tags,
            ),
        )
        return blog_view(blog, user.name)


@router.patch("/api/blogs/{blog_id}")
async def update_blog(
    blog_id: str,
    request: Request,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    target_id = parse_resource_id(blog_id, not_found_message="Blog not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await BlogsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
    except ContentError as exc:
        raise content_http_error(exc, resource=BLOG_RESOURCE) from exc

    data, form = await read_json_or_form(request)
    payload = validate_payload(BlogUpdatePayload, data)
    values: dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)

    images = form_files(form, "images", max_count=MAX_BLOG_IMAGES)
    try:
        new_image_urls = await upload_images(images, folder=BLOGS_FOLDER, prefix="blog")
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    try:
        async with SessionLocal.begin() as session:
            blog = ensure_artist_owns(
                await BlogsRepo.get_by_id(session, target_id),
                caller_id=user.id,
                caller_role=user.role,
            )
            if new_image_urls:
                # Uploaded images extend the post's gallery.
                values["images"] = [*(blog.images or []), *new_image_urls]
            values["updated_at"] = datetime.now(timezone.utc)
            blog = await BlogsRepo.update_fields(session, blog, values)
            return blog_view(blog, user.name)
    except ContentError as exc:
        raise content_http_error(exc, resource=BLOG_RESOURCE) from exc


@router.delete("/api/blogs/{blog_id}")
async def delete_blog(blog_id: str, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, str]:
    target_id = parse_resource_id(blog_id, not_found_message="Blog not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await BlogsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
            await BlogsRepo.delete(session, target_id)
    except ContentError as exc:
        raise content_http_error(exc, resource=BLOG_RESOURCE) from exc
    return {"message": "Blog deleted successfully"}
