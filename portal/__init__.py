"""Package entrypoint for the portal Flask app.

Exposes the app factory. ``flask --app portal run`` finds ``create_app``
on its own; ``python -m portal`` starts the development server.
"""

from .website import create_app

__all__ = ["create_app"]
