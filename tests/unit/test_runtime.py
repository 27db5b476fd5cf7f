"""Unit tests for the gateway process entrypoint."""

from __future__ import annotations

import typing as typ
from unittest import mock

import falcon.asgi
import pytest

from autotest_gateway import runtime

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.parametrize("value", ["80", "11333", "65535"])
def test_parse_port_accepts_valid_ports(value: str) -> None:
    """Integers in range are returned."""
    assert runtime.parse_port(value) == int(value)


@pytest.mark.parametrize("value", ["0", "65536", "http", ""])
def test_parse_port_rejects_invalid_ports(value: str) -> None:
    """Anything else exits the process."""
    with pytest.raises(SystemExit):
        runtime.parse_port(value)


def test_create_app_reads_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """The Granian factory builds an app from AUTOTEST_* variables."""
    monkeypatch.setenv("AUTOTEST_NAME", "classytest")
    monkeypatch.setenv("AUTOTEST_PERSIST_DIR", str(tmp_path))

    app = runtime.create_app()

    assert isinstance(app, falcon.asgi.App)


def test_main_serves_factory_target(monkeypatch: pytest.MonkeyPatch) -> None:
    """main configures logging and starts Granian on the configured port."""
    monkeypatch.setenv("AUTOTEST_HOST", "127.0.0.1")
    monkeypatch.setenv("AUTOTEST_PORT", "8080")
    monkeypatch.setenv("AUTOTEST_LOG_LEVEL", "debug")

    with (
        mock.patch("autotest_gateway.runtime.configure_logging") as configure,
        mock.patch("granian.Granian") as granian,
    ):
        configure.return_value = ("DEBUG", False)
        runtime.main()

    configure.assert_called_once_with("debug")
    kwargs = granian.call_args.kwargs
    assert granian.call_args.args == ("autotest_gateway.runtime:create_app",)
    assert kwargs["address"] == "127.0.0.1"
    assert kwargs["port"] == 8080
    assert kwargs["factory"] is True
    granian.return_value.serve.assert_called_once_with()
