"""Unit tests for db_config helpers."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal import db_config

pytestmark = pytest.mark.db


def test_portal_url_preferred_over_database_url():
    """PORTAL_DATABASE_URL wins over DATABASE_URL and DB_* parts."""
    env = {
        "PORTAL_DATABASE_URL": "postgresql://localhost/portal",
        "DATABASE_URL": "postgresql://localhost/other",
        "DB_HOST": "ignored",
    }
    assert db_config.get_db_dsn(env) == "postgresql://localhost/portal"


def test_database_url_used_when_portal_url_absent(monkeypatch):
    """DATABASE_URL is read from the process environment."""
    monkeypatch.delenv("PORTAL_DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/portal")
    assert db_config.get_db_dsn() == "postgresql://localhost/portal"


def test_get_db_dsn_raises_when_db_parts_missing():
    """Missing DB_* values raise a clear RuntimeError."""
    with pytest.raises(RuntimeError) as exc_info:
        db_config.get_db_dsn({"DB_HOST": "localhost"})
    message = str(exc_info.value)
    assert "Database configuration missing." in message
    assert "missing: DB_PORT, DB_NAME, DB_USER, DB_PASSWORD" in message


def test_get_db_dsn_builds_and_escapes_conninfo():
    """DB_* variables are converted to quoted/escaped conninfo pairs."""
    env = {
        "DB_HOST": "localhost",
        "DB_PORT": "5432",
        "DB_NAME": "portal",
        "DB_USER": "user\\name",
        "DB_PASSWORD": "pa'ss\\word",
    }
    assert db_config.get_db_dsn(env) == (
        "host='localhost' port='5432' dbname='portal' "
        "user='user\\\\name' password='pa\\'ss\\\\word'"
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, (None, "users")),
        ("accounts", (None, "accounts")),
        ("auth.accounts", ("auth", "accounts")),
    ],
)
def test_get_users_table(value, expected):
    """Table names may be schema-qualified."""
    env = {} if value is None else {db_config.USERS_TABLE_ENV_VAR: value}
    assert db_config.get_users_table(env) == expected


@pytest.mark.parametrize("value", ["users; DROP TABLE users", "a.b.c", "1users"])
def test_get_users_table_rejects_bad_names(value):
    """Anything but plain identifiers is refused."""
    with pytest.raises(RuntimeError):
        db_config.get_users_table({db_config.USERS_TABLE_ENV_VAR: value})
