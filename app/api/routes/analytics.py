from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.errors import api_error
from app.api.routes.auth_guard import AuthUser, authenticate_token
from app.api.schemas import AnalyticsLogRequest
from app.core.analytics_events import emit_analytics_event
from app.db.session import SessionLocal

router = APIRouter(tags=["analytics"])


def _optional_uuid(raw: str | None, *, field: str) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError as exc:
        raise api_error(400, "E_VALIDATION", f"Invalid {field}") from exc


@router.post("/api/analytics")
async def log_analytics_event(
    payload: AnalyticsLogRequest,
    user: AuthUser = Depends(authenticate_token),
) -> dict[str, str]:
    if not payload.is_known_action():
        raise api_error(400, "E_VALIDATION", f"Unknown analytics action '{payload.action}'")
    if not payload.is_known_context():
        raise api_error(400, "E_VALIDATION", f"Unknown analytics context '{payload.context}'")

    async with SessionLocal.begin() as session:
        await emit_analytics_event(
            session,
            action=payload.action,
            context=payload.context,
            happened_at=datetime.now(timezone.utc),
            user_id=user.id,
            artist_id=_optional_uuid(payload.artist_id, field="artistId"),
            song_id=_optional_uuid(payload.song_id, field="songId"),
            merch_id=_optional_uuid(payload.merch_id, field="merchId"),
            event_id=_optional_uuid(payload.event_id, field="eventId"),
            value=payload.value,
            metadata=payload.metadata,
        )
    return {"message": "Event logged"}
