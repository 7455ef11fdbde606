"""
Configuration loading for the portal application.

Values are layered: built-in defaults, then ``PORTAL_*`` environment
variables, then explicit overrides passed to ``create_app``. The result is
a plain dict that is applied to ``app.config``.
"""

import logging
import os
import secrets
from datetime import timedelta


LOGGER = logging.getLogger(__name__)

SESSION_LIFETIME_DEFAULT = 3600
USERS_SOURCES = ("default", "file", "database")
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")

DEFAULTS = {
    "SECRET_KEY": None,
    "PERMANENT_SESSION_LIFETIME": timedelta(seconds=SESSION_LIFETIME_DEFAULT),
    "SESSION_COOKIE_NAME": "portal_session",
    "SESSION_COOKIE_HTTPONLY": True,
    "SESSION_COOKIE_SAMESITE": "Lax",
    "SESSION_COOKIE_SECURE": False,
    "PORTAL_USERS_SOURCE": "default",
    "PORTAL_USERS_FILE": None,
    "TESTING": False,
}


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


def parse_bool(value, name="value") -> bool:
    """
    Interpret common truthy/falsy strings.

    :raises ConfigError: For strings that are neither.
    """

    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_lifetime(value) -> timedelta:
    """
    Convert seconds (or a ``timedelta``) into a positive session lifetime.

    :raises ConfigError: If the value is not a positive number of seconds.
    """

    if isinstance(value, timedelta):
        lifetime = value
    else:
        try:
            lifetime = timedelta(seconds=int(str(value).strip()))
        except (TypeError, ValueError, OverflowError) as exc:
            raise ConfigError(f"Session lifetime must be an integer, got {value!r}") from exc
    if lifetime.total_seconds() <= 0:
        raise ConfigError("Session lifetime must be positive.")
    return lifetime


def _from_environ(environ) -> dict:
    """Read the ``PORTAL_*`` variables that are present."""

    values = {}
    if environ.get("PORTAL_SECRET_KEY"):
        values["SECRET_KEY"] = environ["PORTAL_SECRET_KEY"]
    if environ.get("PORTAL_SESSION_LIFETIME"):
        values["PERMANENT_SESSION_LIFETIME"] = environ["PORTAL_SESSION_LIFETIME"]
    if environ.get("PORTAL_SESSION_COOKIE"):
        values["SESSION_COOKIE_NAME"] = environ["PORTAL_SESSION_COOKIE"]
    if "PORTAL_COOKIE_SECURE" in environ:
        values["SESSION_COOKIE_SECURE"] = environ["PORTAL_COOKIE_SECURE"]
    if environ.get("PORTAL_USERS_SOURCE"):
        values["PORTAL_USERS_SOURCE"] = environ["PORTAL_USERS_SOURCE"]
    if environ.get("PORTAL_USERS_FILE"):
        values["PORTAL_USERS_FILE"] = environ["PORTAL_USERS_FILE"]
    return values


def load_config(overrides=None, environ=None) -> dict:
    """
    Build the application configuration.

    :param overrides: Optional dict applied last (tests, embedding apps).
    :param environ: Mapping to read instead of ``os.environ``.
    :raises ConfigError: If any value is invalid.
    :returns: Validated configuration dict.
    """

    env = os.environ if environ is None else environ
    config = dict(DEFAULTS)
    config.update(_from_environ(env))
    config.update(overrides or {})

    config["PERMANENT_SESSION_LIFETIME"] = parse_lifetime(config["PERMANENT_SESSION_LIFETIME"])
    config["SESSION_COOKIE_SECURE"] = parse_bool(
        config["SESSION_COOKIE_SECURE"], "SESSION_COOKIE_SECURE"
    )

    source = str(config["PORTAL_USERS_SOURCE"]).strip().lower()
    if source not in USERS_SOURCES:
        raise ConfigError(
            f"PORTAL_USERS_SOURCE must be one of {', '.join(USERS_SOURCES)}, got {source!r}"
        )
    config["PORTAL_USERS_SOURCE"] = source
    if source == "file" and not config["PORTAL_USERS_FILE"]:
        raise ConfigError("PORTAL_USERS_FILE is required when PORTAL_USERS_SOURCE=file")

    if not config["SECRET_KEY"]:
        # Sessions signed with this key do not survive a restart.
        config["SECRET_KEY"] = secrets.token_hex(32)
        if not config["TESTING"]:
            LOGGER.warning(
                "PORTAL_SECRET_KEY is not set; using a random key for this process."
            )
    return config
