from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.content.errors import ContentAccessDeniedError, ContentNotFoundError
from app.content.ownership import ensure_artist_owns


def test_owner_gets_resource_back() -> None:
    artist_id = uuid4()
    song = SimpleNamespace(artist_id=artist_id)

    assert ensure_artist_owns(song, caller_id=artist_id, caller_role="artist") is song


def test_missing_resource_is_not_found() -> None:
    with pytest.raises(ContentNotFoundError):
        ensure_artist_owns(None, caller_id=uuid4(), caller_role="artist")


def test_other_artist_is_denied() -> None:
    with pytest.raises(ContentAccessDeniedError):
        ensure_artist_owns(SimpleNamespace(artist_id=uuid4()), caller_id=uuid4(), caller_role="artist")


def test_non_artist_is_denied_even_for_missing_resource() -> None:
    with pytest.raises(ContentAccessDeniedError):
        ensure_artist_owns(None, caller_id=uuid4(), caller_role="fan")
