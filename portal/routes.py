"""Route table: URL rule -> controller."""

from .controllers import HealthController, IndexController, LogoutController, ProtectedController


ROUTES = (
    ("/", "index", IndexController, ["GET", "POST"]),
    ("/protected", "protected", ProtectedController, ["GET"]),
    ("/logout", "logout", LogoutController, ["GET", "POST"]),
    ("/health", "health", HealthController, ["GET"]),
)


def register_routes(app, routes=ROUTES):
    """
    Add every entry of ``routes`` to ``app``.

    :param app: Flask application.
    :param routes: Iterable of ``(rule, endpoint, controller, methods)``.
    """

    for rule, endpoint, controller, methods in routes:
        app.add_url_rule(rule, view_func=controller.as_view(endpoint), methods=methods)
