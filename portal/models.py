"""
Model layer: the credential table consulted on login.

The table maps usernames to password strings. It is built once when the
application starts and is read-only afterwards. Values may be plain
passwords (demo setups) or Werkzeug password hashes.
"""

import hmac
import json
import logging
from types import MappingProxyType

import psycopg
from psycopg import sql
from werkzeug.security import check_password_hash

from . import db_config


LOGGER = logging.getLogger(__name__)

DEFAULT_USERS = {"admin": "secret", "guest": "guest"}
HASH_PREFIXES = ("pbkdf2:", "scrypt:")
LOAD_ERRORS = (OSError, ValueError, TypeError)
DATABASE_ERRORS = (psycopg.Error, RuntimeError)


class CredentialStoreError(RuntimeError):
    """Raised when a credential source cannot be read."""


def _validate_users(users) -> dict:
    """
    Check that ``users`` is a mapping of non-empty strings to strings.

    :raises CredentialStoreError: On any malformed entry.
    """

    if not hasattr(users, "items"):
        raise CredentialStoreError("Credential table must be a mapping of username to password.")

    checked = {}
    for username, password in users.items():
        if not isinstance(username, str) or not username.strip():
            raise CredentialStoreError(f"Invalid username in credential table: {username!r}")
        if not isinstance(password, str) or not password:
            raise CredentialStoreError(f"Invalid password for user {username!r}")
        key = username.strip()
        if key in checked:
            raise CredentialStoreError(f"Duplicate username in credential table: {key!r}")
        checked[key] = password
    return checked


def _as_bytes(value: str) -> bytes:
    # Lone surrogates from JSON bodies must not break encoding.
    return value.encode("utf-8", errors="surrogatepass")


def password_matches(stored: str, candidate: str) -> bool:
    """
    Compare a submitted password with the stored value.

    Hashed values are checked with Werkzeug; plain values with a
    constant-time comparison. A stored value starting with ``pbkdf2:`` or
    ``scrypt:`` is always treated as a hash; malformed hashes never match.
    """

    if stored.startswith(HASH_PREFIXES):
        try:
            return check_password_hash(stored, candidate)
        except ValueError:
            LOGGER.warning("Stored password hash could not be checked")
            return False
    return hmac.compare_digest(_as_bytes(stored), _as_bytes(candidate))


class UserStore:
    """Immutable username -> password lookup table."""

    def __init__(self, users=None):
        self._users = MappingProxyType(_validate_users(DEFAULT_USERS if users is None else users))

    @property
    def users(self):
        """Read-only view of the table."""
        return self._users

    def __contains__(self, username):
        return username in self._users

    def __len__(self):
        return len(self._users)

    def usernames(self):
        return sorted(self._users)

    def authenticate(self, username, password) -> bool:
        """
        Return True when ``username`` exists and ``password`` matches.

        Unknown users and wrong passwords both return False.
        """

        if not username or password is None:
            return False
        stored = self._users.get(username)
        if stored is None:
            # Keep timing close to a real comparison.
            hmac.compare_digest(b"", _as_bytes(password))
            return False
        return password_matches(stored, password)


def load_users_from_file(path) -> dict:
    """
    Read a JSON object of ``{"username": "password"}`` pairs.

    :raises CredentialStoreError: If the file is missing or malformed.
    """

    try:
        with open(path, "r", encoding="utf-8") as handle:
            users = json.load(handle)
    except LOAD_ERRORS as exc:
        raise CredentialStoreError(f"Could not read users file {path}") from exc
    return _validate_users(users)


def load_users_from_database(dsn=None, *, connect_fn=None, table=None) -> dict:
    """
    Read ``username, password`` rows from PostgreSQL once.

    :param dsn: Connection string; defaults to ``db_config.get_db_dsn()``.
    :param connect_fn: Replacement for ``psycopg.connect`` (tests).
    :param table: ``(schema, table)`` pair; defaults to the configured table.
    :raises CredentialStoreError: If the query fails.
    """

    connect_fn = connect_fn or psycopg.connect
    try:
        dsn = dsn or db_config.get_db_dsn()
        schema, table_name = table or db_config.get_users_table()
        identifier = (
            sql.Identifier(schema, table_name) if schema else sql.Identifier(table_name)
        )
        stmt = sql.SQL("SELECT username, password FROM {table} ORDER BY username;").format(
            table=identifier
        )
        with connect_fn(dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt)
                rows = cur.fetchall()
    except DATABASE_ERRORS as exc:
        raise CredentialStoreError("Could not load users from the database") from exc

    LOGGER.info("Loaded %d users from the database", len(rows))
    return _validate_users(dict(rows))


def build_user_store(config, *, connect_fn=None) -> UserStore:
    """
    Create the credential table named by ``PORTAL_USERS_SOURCE``.

    :param config: Application configuration dict.
    :param connect_fn: Optional psycopg connect replacement.
    """

    source = config.get("PORTAL_USERS_SOURCE", "default")
    if source == "file":
        return UserStore(load_users_from_file(config["PORTAL_USERS_FILE"]))
    if source == "database":
        return UserStore(load_users_from_database(connect_fn=connect_fn))
    if not config.get("TESTING"):
        LOGGER.warning("Using the built-in demo accounts; do not deploy this setup.")
    return UserStore()
