from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, parse_resource_id, require_role
from app.api.routes.content_request import (
    content_http_error,
    form_files,
    media_http_error,
    read_json_or_form,
    upload_images,
    validate_payload,
)
from app.api.schemas import MerchCreatePayload, MerchUpdatePayload
from app.api.serializers import merch_view
from app.content.errors import ContentError
from app.content.ownership import ensure_artist_owns
from app.core.constants import ROLE_ARTIST
from app.db.models import Merch
from app.db.repo.merch_repo import MERCH_SORT_ORDERS, MerchRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.media_uploads import MERCH_FOLDER, MediaUploadError

router = APIRouter(tags=["merch"])

MERCH_RESOURCE = "Merch"
MAX_MERCH_IMAGES = 5


@router.get("/api/merch")
async def list_merch(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    min_price: Decimal | None = Query(default=None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(default=None, alias="maxPrice", ge=0),
    sort: str | None = Query(default=None),
) -> list[dict[str, Any]]:
    if sort and sort not in MERCH_SORT_ORDERS:
        raise api_error(400, "E_VALIDATION", f"Unsupported sort '{sort}'")
    async with SessionLocal.begin() as session:
        rows = await MerchRepo.list_filtered(
            session,
            search=search,
            category=category,
            min_price=min_price,
            max_price=max_price,
            sort=sort,
        )
    return [merch_view(item, name) for item, name in rows]


@router.get("/api/merch/artist")
async def my_merch(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        items = await MerchRepo.list_by_artist(session, user.id)
    return [merch_view(item, user.name) for item in items]


@router.get("/api/merch/{merch_id}")
async def get_merch(merch_id: str) -> dict[str, Any]:
    target_id = parse_resource_id(merch_id, not_found_message="Merch item not found")
    async with SessionLocal.begin() as session:
        item = await MerchRepo.get_by_id(session, target_id)
        if item is None:
            raise api_error(404, "E_NOT_FOUND", "Merch item not found")
        artist = await UsersRepo.get_by_id(session, item.artist_id)
    return merch_view(item, artist.name if artist is not None else None)


@router.post("/api/merch")
async def create_merch(request: Request, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, Any]:
    data, form = await read_json_or_form(request)
    payload = validate_payload(MerchCreatePayload, data)
    images = form_files(form, "images", max_count=MAX_MERCH_IMAGES)

    async with SessionLocal.begin() as session:
        if await UsersRepo.get_artist(session, user.id) is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")

    try:
        image_urls = await upload_images(images, folder=MERCH_FOLDER, prefix="merch")
    except MediaUploadError as exc:
        raise media_http_error(exc) from exc

    async with SessionLocal.begin() as session:
        item = await MerchRepo.create(
            session,
            merch=Merch(
                artist_id=user.id,
                name=payload.name,
                description=payload.description,
                price=payload.price,
                stock=payload.stock,
                category=payload.category,
                images=image_urls,
                orders_count=0,
            ),
        )
        return merch_view(item, user.name)


@router.patch("/api/merch/{merch_id}")
async def update_merch(
    merch_id: str,
    request: Request,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    target_id = parse_resource_id(merch_id, not_found_message="Merch not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await MerchRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
    except ContentError as exc:
        raise content_http_error(exc, resource=MERCH_RESOURCE) from exc

    data, form = await read_json_or_form(request)
    payload = validate_payload(MerchUpdatePayload, data)
    values: dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)

    images = form_files(form, "images", max_count=MAX_MERCH_IMAGES)
    if images:
        # New uploads replace the gallery.
        try:
            values["images"] = await upload_images(images, folder=MERCH_FOLDER, prefix="merch")
        except MediaUploadError as exc:
            raise media_http_error(exc) from exc

    values["updated_at"] = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            item = ensure_artist_owns(
                await MerchRepo.get_by_id(session, target_id),
                caller_id=user.id,
                caller_role=user.role,
            )
            item = await MerchRepo.update_fields(session, item, values)
            return merch_view(item, user.name)
    except ContentError as exc:
        raise content_http_error(exc, resource=MERCH_RESOURCE) from exc


@router.delete("/api/merch/{merch_id}")
async def delete_merch(merch_id: str, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, str]:
    target_id = parse_resource_id(merch_id, not_found_message="Merch not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await MerchRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
            await MerchRepo.delete(session, target_id)
    except ContentError as exc:
        raise content_http_error(exc, resource=MERCH_RESOURCE) from exc
    return {"message": "Merch deleted successfully"}
