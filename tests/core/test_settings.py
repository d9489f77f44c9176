"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from blog_gateway.core.settings import Settings


@pytest.mark.parametrize(
    "url",
    [
        "sqlite:///./blog.db",
        "sqlite+pysqlite:///:memory:",
        "postgresql://blog@db/blog",
        "postgresql+psycopg://blog@db/blog",
    ],
)
def test_supported_database_urls(url) -> None:
    assert Settings(DATABASE_URL=url).database_url == url


@pytest.mark.parametrize("url", ["mysql://blog@db/blog", "mssql+pyodbc://blog@db/blog"])
def test_unsupported_database_url_fails_at_startup(url) -> None:
    with pytest.raises(ValidationError, match="Unsupported database backend"):
        Settings(DATABASE_URL=url)
