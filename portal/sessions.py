"""
Session helpers built on Flask's signed-cookie session.

The cookie holds the logged-in username and login time. Flask signs it
with ``SECRET_KEY``; a cookie whose signature does not verify, or that is
older than ``PERMANENT_SESSION_LIFETIME``, loads as an empty session.
"""

import functools
from datetime import datetime, timezone

from flask import current_app, flash, jsonify, redirect, request, session, url_for


SESSION_USER_KEY = "username"
SESSION_LOGIN_TIME_KEY = "logged_in_at"
LOGIN_REQUIRED_MESSAGE = "Please log in to view that page."
AUTH_REQUIRED_ERROR = "authentication required"


def prefers_json_response() -> bool:
    """
    Return True when the caller asked for JSON rather than HTML.

    Browsers send ``text/html`` and get pages and redirects. API callers
    that send a JSON body or only accept ``application/json`` get JSON.
    """

    if request.is_json:
        return True
    accept = (request.headers.get("Accept") or "").lower()
    if "text/html" in accept:
        return False
    return "application/json" in accept


def login_user(username: str) -> None:
    """Start a fresh permanent session for ``username``."""

    session.clear()
    session.permanent = True
    session[SESSION_USER_KEY] = username
    session[SESSION_LOGIN_TIME_KEY] = datetime.now(timezone.utc).isoformat(timespec="seconds")


def logout_user():
    """
    Drop all session state.

    :returns: The username that was logged in, or None.
    """

    username = session.get(SESSION_USER_KEY)
    session.clear()
    return username


def current_user():
    return session.get(SESSION_USER_KEY)


def is_logged_in() -> bool:
    return current_user() is not None


def login_time():
    return session.get(SESSION_LOGIN_TIME_KEY)


def login_required(view):
    """
    Only run ``view`` for logged-in callers.

    Anonymous browser requests are flashed a notice and redirected to the
    login form; JSON callers get a 401.
    """

    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        if is_logged_in():
            return view(*args, **kwargs)

        current_app.logger.info("Anonymous request to %s redirected to login", request.path)
        if prefers_json_response():
            return jsonify({"error": AUTH_REQUIRED_ERROR}), 401
        flash(LOGIN_REQUIRED_MESSAGE, "info")
        return redirect(url_for("index"), code=303)

    return wrapped
