"""Tests for settings parsing and production safeguards."""

import pytest
from pydantic import ValidationError

from quizdesk.core.config import DEFAULT_DATABASE_URL, Settings

PROD_DB = "postgresql+psycopg2://quiz:secret@db:5432/quizdesk"


def test_cors_origins_split_from_string():
    s = Settings(CORS_ORIGINS="https://a.example.com, https://b.example.com,")

    assert s.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]


def test_api_prefix_normalized():
    assert Settings(API_PREFIX="api/").API_PREFIX == "/api"


def test_prod_requires_database_url():
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        Settings(ENV="prod", DATABASE_URL=DEFAULT_DATABASE_URL, JWT_SECRET="x" * 40)


@pytest.mark.parametrize("secret", [None, "change_me"])
def test_prod_requires_jwt_secret(secret):
    with pytest.raises(ValidationError, match="JWT_SECRET"):
        Settings(ENV="prod", DATABASE_URL=PROD_DB, JWT_SECRET=secret, REDIS_ENABLED=False)


def test_prod_makes_redis_required():
    s = Settings(
        ENV="prod",
        DATABASE_URL=PROD_DB,
        JWT_SECRET="x" * 40,
        REDIS_ENABLED=True,
        REDIS_URL="redis://cache:6379/0",
    )

    assert s.REDIS_REQUIRED is True


def test_prod_redis_needs_url():
    with pytest.raises(ValidationError, match="REDIS_URL"):
        Settings(ENV="prod", DATABASE_URL=PROD_DB, JWT_SECRET="x" * 40, REDIS_ENABLED=True, REDIS_URL=None)
