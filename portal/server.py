"""Development server entrypoint."""

import argparse
import logging
import os

from .website import create_app


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the portal development server.")
    parser.add_argument("--host", default=os.getenv("PORTAL_HOST", DEFAULT_HOST))
    parser.add_argument("--port", type=int, default=os.getenv("PORTAL_PORT", str(DEFAULT_PORT)))
    parser.add_argument("--debug", action="store_true", help="enable the reloader and debugger")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Configure logging, build the app and serve it."""
    args = parse_args(argv)
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)
