"""
Database settings for the PostgreSQL credential source.

Only consulted when the user table is read from PostgreSQL
(``PORTAL_USERS_SOURCE=database``). Everything comes from the environment
so no database credentials live in application code.
"""

import os
import re


DSN_ENV_VARS = ("PORTAL_DATABASE_URL", "DATABASE_URL")
DB_ENV_KEYS = ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD")
USERS_TABLE_ENV_VAR = "PORTAL_USERS_TABLE"
USERS_TABLE_DEFAULT = "users"
_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def _quote_conninfo_value(value: str) -> str:
    """Quote and escape one libpq conninfo value."""

    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def get_db_dsn(environ=None) -> str:
    """
    Build the credential database DSN.

    Resolution order:
    1) ``PORTAL_DATABASE_URL``, then ``DATABASE_URL``.
    2) Compose from ``DB_HOST``, ``DB_PORT``, ``DB_NAME``, ``DB_USER``,
       ``DB_PASSWORD``.

    :param environ: Mapping to read instead of ``os.environ``.
    :raises RuntimeError: If neither a URL nor every DB_* variable is set.
    :returns: Connection string accepted by ``psycopg.connect``.
    """

    env = os.environ if environ is None else environ
    for name in DSN_ENV_VARS:
        if env.get(name):
            return env[name]

    missing = [key for key in DB_ENV_KEYS if not env.get(key)]
    if missing:
        raise RuntimeError(
            "Database configuration missing. Set PORTAL_DATABASE_URL, "
            "DATABASE_URL or all of DB_HOST, DB_PORT, DB_NAME, DB_USER, "
            f"DB_PASSWORD (missing: {', '.join(missing)})."
        )

    parts = zip(
        ("host", "port", "dbname", "user", "password"),
        (env[key] for key in DB_ENV_KEYS),
    )
    return " ".join(f"{key}={_quote_conninfo_value(value)}" for key, value in parts)


def get_users_table(environ=None):
    """
    Return the ``(schema, table)`` pair holding usernames and passwords.

    :raises RuntimeError: If the configured name is not a plain identifier.
    """

    env = os.environ if environ is None else environ
    name = env.get(USERS_TABLE_ENV_VAR) or USERS_TABLE_DEFAULT
    if not _TABLE_NAME_RE.match(name):
        raise RuntimeError(f"Invalid {USERS_TABLE_ENV_VAR} value: {name!r}")
    if "." in name:
        schema, table = name.split(".", 1)
        return schema, table
    return None, name
