from __future__ import annotations

from datetime import datetime, timezone
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
from app.api.schemas import EventCreatePayload, EventUpdatePayload
from app.api.serializers import event_view
from app.content.errors import ContentError
from app.content.ownership import ensure_artist_owns
from app.core.constants import ROLE_ARTIST
from app.db.models import Event
from app.db.repo.events_repo import EVENT_DATE_WINDOWS, EventsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.services.media_uploads import EVENTS_FOLDER, MediaUploadError

router = APIRouter(tags=["events"])

EVENT_RESOURCE = "Event"


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes from the client are taken as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@router.get("/api/events")
async def list_events(
    search: str | None = Query(default=None),
    location: str | None = Query(default=None),
    date: str | None = Query(default=None),
) -> list[dict[str, Any]]:
    if date and date not in EVENT_DATE_WINDOWS:
        raise api_error(400, "E_VALIDATION", f"Unsupported date window '{date}'")
    async with SessionLocal.begin() as session:
        rows = await EventsRepo.list_filtered(
            session,
            now_utc=datetime.now(timezone.utc),
            search=search,
            location=location,
            date_window=date,
        )
    return [event_view(event, name) for event, name in rows]


@router.get("/api/events/artist")
async def my_events(user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> list[dict[str, Any]]:
    async with SessionLocal.begin() as session:
        events = await EventsRepo.list_by_artist(session, user.id)
    return [event_view(event, user.name) for event in events]


@router.get("/api/events/{event_id}")
async def get_event(event_id: str) -> dict[str, Any]:
    target_id = parse_resource_id(event_id, not_found_message="Event not found")
    async with SessionLocal.begin() as session:
        event = await EventsRepo.get_by_id(session, target_id)
        if event is None:
            raise api_error(404, "E_NOT_FOUND", "Event not found")
        artist = await UsersRepo.get_by_id(session, event.artist_id)
    return event_view(event, artist.name if artist is not None else None)


@router.post("/api/events")
async def create_event(request: Request, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, Any]:
    data, form = await read_json_or_form(request)
    payload = validate_payload(EventCreatePayload, data)
    image = form_files(form, "image", max_count=1)

    async with SessionLocal.begin() as session:
        if await UsersRepo.get_artist(session, user.id) is None:
            raise api_error(404, "E_NOT_FOUND", "Artist profile not found")

    image_url = payload.image_url
    if image:
        try:
            image_url = (await upload_images(image, folder=EVENTS_FOLDER, prefix="event"))[0]
        except MediaUploadError as exc:
            raise media_http_error(exc) from exc

    async with SessionLocal.begin() as session:
        event = await EventsRepo.create(
            session,
            event=Event(
                artist_id=user.id,
                title=payload.title,
                description=payload.description,
                date=_as_utc(payload.date),
                location=payload.location,
                online_url=payload.online_url,
                ticket_price=payload.ticket_price,
                capacity=payload.capacity,
                image_url=image_url,
                attendees=[],
            ),
        )
        return event_view(event, user.name)


@router.patch("/api/events/{event_id}")
async def update_event(
    event_id: str,
    request: Request,
    user: AuthUser = Depends(require_role(ROLE_ARTIST)),
) -> dict[str, Any]:
    target_id = parse_resource_id(event_id, not_found_message="Event not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await EventsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
    except ContentError as exc:
        raise content_http_error(exc, resource=EVENT_RESOURCE) from exc

    data, form = await read_json_or_form(request)
    payload = validate_payload(EventUpdatePayload, data)
    values: dict[str, Any] = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "date" in values:
        values["date"] = _as_utc(values["date"])

    image = form_files(form, "image", max_count=1)
    if image:
        try:
            values["image_url"] = (await upload_images(image, folder=EVENTS_FOLDER, prefix="event"))[0]
        except MediaUploadError as exc:
            raise media_http_error(exc) from exc

    try:
        async with SessionLocal.begin() as session:
            event = ensure_artist_owns(
                await EventsRepo.get_by_id(session, target_id),
                caller_id=user.id,
                caller_role=user.role,
            )
            if values:
                event = await EventsRepo.update_fields(session, event, values)
            return event_view(event, user.name)
    except ContentError as exc:
        raise content_http_error(exc, resource=EVENT_RESOURCE) from exc


@router.delete("/api/events/{event_id}")
async def delete_event(event_id: str, user: AuthUser = Depends(require_role(ROLE_ARTIST))) -> dict[str, str]:
    target_id = parse_resource_id(event_id, not_found_message="Event not found")
    try:
        async with SessionLocal.begin() as session:
            ensure_artist_owns(await EventsRepo.get_by_id(session, target_id), caller_id=user.id, caller_role=user.role)
            await EventsRepo.delete(session, target_id)
    except ContentError as exc:
        raise content_http_error(exc, resource=EVENT_RESOURCE) from exc
    return {"message": "Event deleted successfully"}
