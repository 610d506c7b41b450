from __future__ import annotations

import pytest

from baseline.core.config import Settings


@pytest.fixture
def make_settings():
    """Settings isolated from any local .env, with request pauses disabled."""

    def _make(**overrides) -> Settings:
        values = {"REQUEST_PAUSE_SECONDS": 0, **overrides}
        return Settings(_env_file=None, **values)

    return _make
