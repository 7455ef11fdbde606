"""
Controllers for the portal routes.

Each controller is a ``MethodView``: one class per route, one method per
HTTP verb. Controllers read the request, consult the credential table and
session helpers, and pick a template or redirect.
"""

from flask import current_app, flash, jsonify, redirect, render_template, request, url_for
from flask.views import MethodView

from .sessions import (
    current_user,
    is_logged_in,
    login_required,
    login_time,
    login_user,
    logout_user,
    prefers_json_response,
)


INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."
MISSING_FIELDS_MESSAGE = "Username and password are required."
LOGGED_OUT_MESSAGE = "You have been logged out."
WELCOME_MESSAGE = "Welcome, {username}!"


def _login_fields():
    """Return ``(username, password)`` from a form post or JSON body."""

    if request.is_json:
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            payload = {}
    else:
        payload = request.form
    username = payload.get("username")
    password = payload.get("password")
    username = username.strip() if isinstance(username, str) else ""
    password = password if isinstance(password, str) else ""
    return username, password


class IndexController(MethodView):
    """Login form on GET, credential check on POST."""

    def get(self):
        if is_logged_in():
            return redirect(url_for("protected"), code=303)
        return render_template("index.html")

    def post(self):
        username, password = _login_fields()
        expects_json = prefers_json_response()

        if not username or not password:
            if expects_json:
                return jsonify({"ok": False, "error": MISSING_FIELDS_MESSAGE}), 400
            flash(MISSING_FIELDS_MESSAGE, "error")
            return render_template("index.html", username=username), 400

        store = current_app.config["USER_STORE"]
        if not store.authenticate(username, password):
            current_app.logger.warning("Failed login for user %r", username)
            if expects_json:
                return jsonify({"ok": False, "error": INVALID_CREDENTIALS_MESSAGE}), 401
            flash(INVALID_CREDENTIALS_MESSAGE, "error")
            return render_template("index.html", username=username), 401

        login_user(username)
        current_app.logger.info("User %r logged in", username)
        if expects_json:
            return jsonify({"ok": True, "username": username}), 200
        flash(WELCOME_MESSAGE.format(username=username), "success")
        return redirect(url_for("protected"), code=303)


class ProtectedController(MethodView):
    """Page only visible with a valid session."""

    decorators = [login_required]

    def get(self):
        if prefers_json_response():
            return jsonify({"username": current_user(), "logged_in_at": login_time()}), 200
        return render_template(
            "protected.html",
            username=current_user(),
            logged_in_at=login_time(),
        )


class LogoutController(MethodView):
    """Clear the session and go back to the login form."""

    def get(self):
        username = logout_user()
        if username is not None:
            current_app.logger.info("User %r logged out", username)
        if prefers_json_response():
            return jsonify({"ok": True}), 200
        flash(LOGGED_OUT_MESSAGE, "info")
        return redirect(url_for("index"), code=303)

    post = get


class HealthController(MethodView):
    """Liveness probe."""

    def get(self):
        return jsonify({"status": "healthy"}), 200
