"""
tests/test_db_config.py

Database URL resolution, engine settings and table metadata. No database
connection is opened.
"""

from __future__ import annotations

import pytest

import db.models  # noqa: F401  registers the visit tables
from db.base import Base
from db.config import DatabaseSettings, normalize_postgres_url, resolve_database_url
from db.session import create_db_engine

_URL_NAMES = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT")


@pytest.fixture(autouse=True)
def clean_database_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _URL_NAMES + ("SQL_ECHO", "DB_POOL_SIZE", "DB_POOL_RECYCLE", "DB_MAX_OVERFLOW"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("db.config.load_env_files", lambda: None)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgres://u:p@host/db", "postgresql+psycopg://u:p@host/db"),
        ("postgresql://u:p@host/db", "postgresql+psycopg://u:p@host/db"),
        ("postgresql+psycopg://u:p@host/db", "postgresql+psycopg://u:p@host/db"),
    ],
)
def test_normalize_postgres_url(raw: str, expected: str) -> None:
    assert normalize_postgres_url(raw) == expected


def test_direct_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://direct/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/db")

    assert resolve_database_url() == "postgresql+psycopg://direct/db"


def test_cloud_url_only_in_cloud_environments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgres://cloud/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/db")

    assert resolve_database_url() == "postgresql+psycopg://local/db"

    monkeypatch.setenv("ENVIRONMENT", "Production")
    assert resolve_database_url() == "postgresql+psycopg://cloud/db"


def test_missing_url_raises() -> None:
    with pytest.raises(RuntimeError, match="No database URL configured"):
        resolve_database_url()


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
    monkeypatch.setenv("SQL_ECHO", "yes")
    monkeypatch.setenv("DB_POOL_SIZE", "12")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "many")

    settings = DatabaseSettings.from_env()

    assert settings.url == "postgresql+psycopg://local/db"
    assert settings.echo is True
    assert settings.pool_size == 12
    assert settings.max_overflow == 10
    assert settings.pool_recycle == 1800


def test_engine_rejects_non_postgres_urls() -> None:
    with pytest.raises(RuntimeError, match="PostgreSQL"):
        create_db_engine(DatabaseSettings(url="sqlite:///incentives.db"))


def test_visit_tables_and_keys() -> None:
    tables = Base.metadata.tables

    assert {"customers", "customer_visits", "visit_transactions"} <= set(tables)
    assert tables["customers"].c.normalized_customer_id.unique
    assert tables["customer_visits"].c.visit_key.unique
    targets = {fk.target_fullname for fk in tables["visit_transactions"].foreign_keys}
    assert targets == {"customer_visits.id", "customers.id"}
    assert Base.metadata.naming_convention["uq"] == "uq_%(table_name)s_%(column_0_name)s"
