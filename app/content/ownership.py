from __future__ import annotations

from typing import Protocol, TypeVar
from uuid import UUID

from app.content.errors import ContentAccessDeniedError, ContentNotFoundError
from app.core.constants import ROLE_ARTIST


class ArtistOwned(Protocol):
    artist_id: UUID


T = TypeVar("T", bound=ArtistOwned)


def ensure_artist_owns(resource: T | None, *, caller_id: UUID, caller_role: str) -> T:
    """Gate update/delete of artist content: missing → not found, anyone but the owner → denied."""
    if caller_role != ROLE_ARTIST:
        raise ContentAccessDeniedError
    if resource is None:
        raise ContentNotFoundError
    if resource.artist_id != caller_id:
        raise ContentAccessDeniedError
    return resource
