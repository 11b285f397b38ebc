from __future__ import annotations

import pytest

from app.core.config import get_settings


@pytest.fixture(autouse=True)
def _disable_rate_limit(monkeypatch):
    # Route tests never reach Redis; the limiter has its own tests.
    monkeypatch.setattr(get_settings(), "rate_limit_enabled", False)
