"""Development server entrypoint tests."""

import runpy
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from flask import Flask
from portal import server

pytestmark = pytest.mark.web


@pytest.fixture()
def fake_run(monkeypatch):
    """Capture Flask.run() keyword arguments instead of serving."""
    called = {}

    def _run(self, *args, **kwargs):
        called["app"] = self
        called["kwargs"] = kwargs

    monkeypatch.setattr(Flask, "run", _run)
    monkeypatch.setenv("PORTAL_SECRET_KEY", "test-secret")
    monkeypatch.delenv("PORTAL_USERS_SOURCE", raising=False)
    return called


def test_parse_args_defaults(monkeypatch):
    """Defaults come from PORTAL_HOST/PORTAL_PORT or built-ins."""
    monkeypatch.delenv("PORTAL_HOST", raising=False)
    monkeypatch.delenv("PORTAL_PORT", raising=False)
    args = server.parse_args([])
    assert args.host == server.DEFAULT_HOST
    assert args.port == server.DEFAULT_PORT
    assert args.debug is False


def test_main_runs_app_with_arguments(fake_run):
    """main() builds the app and passes CLI options to Flask.run()."""
    server.main(["--host", "0.0.0.0", "--port", "9000", "--debug"])
    assert isinstance(fake_run["app"], Flask)
    assert fake_run["kwargs"] == {"host": "0.0.0.0", "port": 9000, "debug": True}


def test_run_script_main_guard(fake_run, monkeypatch):
    """run.py starts the server when executed directly."""
    monkeypatch.setattr(sys, "argv", ["run.py", "--port", "8081"])
    runpy.run_path(str(ROOT / "run.py"), run_name="__main__")
    assert fake_run["kwargs"]["port"] == 8081
    assert fake_run["kwargs"]["debug"] is False


def test_package_main_module(fake_run, monkeypatch):
    """python -m portal starts the server."""
    monkeypatch.setattr(sys, "argv", ["portal"])
    runpy.run_module("portal", run_name="__main__")
    assert fake_run["kwargs"]["host"] == server.DEFAULT_HOST


def test_non_numeric_port_env_is_a_usage_error(monkeypatch, capsys):
    """A bad PORTAL_PORT is reported by argparse instead of crashing."""
    monkeypatch.setenv("PORTAL_PORT", "eighty")
    with pytest.raises(SystemExit) as exc_info:
        server.parse_args([])
    assert exc_info.value.code == 2
    assert "--port" in capsys.readouterr().err


def test_port_env_is_converted_to_int(monkeypatch):
    """PORTAL_PORT is parsed like a command-line value."""
    monkeypatch.setenv("PORTAL_PORT", "9100")
    assert server.parse_args([]).port == 9100
