"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.MATCH_SIMILARITY_FLOOR == 0.3
    assert settings.EMBEDDING_MAX_ATTEMPTS == 3
    assert settings.is_development


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATCH_SIMILARITY_FLOOR", "0.5")
    monkeypatch.setenv("ENV", "production")
    settings = Settings(_env_file=None)
    assert settings.MATCH_SIMILARITY_FLOOR == 0.5
    assert settings.is_production


@pytest.mark.parametrize(
    "overrides",
    [
        {"MATCH_SIMILARITY_FLOOR": 1.5},
        {"EMBEDDING_MAX_ATTEMPTS": 0},
        {"EMBEDDING_CACHE_SIZE": -1},
    ],
)
def test_rejects_out_of_range(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
