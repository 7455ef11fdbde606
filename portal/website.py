"""
Flask application factory for the portal.

``create_app`` wires the pieces together: configuration, the credential
table (model), the route table with its controllers, the templates
(views) and the error pages. Dependencies can be injected for tests.
"""

import logging
import os

from flask import Flask, current_app, jsonify, render_template
from werkzeug.exceptions import HTTPException

from .config import load_config
from .models import build_user_store
from .routes import register_routes
from .sessions import current_user, prefers_json_response


BASE_DIR = os.path.dirname(os.path.abspath(__file__))
TEMPLATE_DIR = os.path.join(BASE_DIR, "templates")
STATIC_DIR = os.path.join(BASE_DIR, "static")
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again later."
LOGGER = logging.getLogger(__name__)


def handle_http_error(exc: HTTPException):
    """
    Render 4xx/5xx errors raised by routing or controllers.

    :returns: Error page (or JSON) with the original status code.
    """

    if prefers_json_response():
        return jsonify({"error": exc.name.lower()}), exc.code
    return render_template("error.html", code=exc.code, title=exc.name, message=exc.description), exc.code


def handle_unexpected_error(exc: Exception):
    """
    Log an unhandled exception and return a generic 500.

    The exception text is never shown to the client.
    """

    if isinstance(exc, HTTPException):
        return handle_http_error(exc)
    current_app.logger.exception("Unhandled error while serving request")
    if prefers_json_response():
        return jsonify({"error": "internal server error"}), 500
    return render_template(
        "error.html",
        code=500,
        title="Internal Server Error",
        message=INTERNAL_ERROR_MESSAGE,
    ), 500


def inject_user():
    return {"current_user": current_user()}


def create_app(config=None, *, user_store=None, connect_fn=None):
    """
    Create and configure the Flask application.

    Dependency injection hooks are exposed for testability.

    :param config: Optional overrides applied on top of environment values.
    :param user_store: Optional ready-made ``UserStore``.
    :param connect_fn: Optional ``psycopg.connect`` replacement used when
        users are loaded from the database.
    :raises ConfigError: If the configuration is invalid.
    :raises CredentialStoreError: If the user table cannot be loaded.
    :returns: Configured Flask app instance.
    """

    app = Flask(__name__, template_folder=TEMPLATE_DIR, static_folder=STATIC_DIR)
    app.config.update(load_config(config))

    if user_store is None:
        user_store = build_user_store(app.config, connect_fn=connect_fn)
    app.config["USER_STORE"] = user_store
    LOGGER.debug("Credential table ready with %d users", len(user_store))

    register_routes(app)
    app.context_processor(inject_user)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app
