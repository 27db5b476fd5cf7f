"""Unit tests for autotest_gateway.api.errors exceptions and error handlers.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_errors.py

"""

from __future__ import annotations

import falcon.asgi
import falcon.testing
import pytest

from autotest_gateway.api.errors import (
    ArtifactNotFoundError,
    ArtifactReadError,
    InvalidInputError,
    register_error_handlers,
)
from autotest_gateway.containers.errors import (
    ContainerRuntimeError,
    RuntimeUnavailableError,
)


class _RaisingResource:
    """Resource that raises the exception it was built with."""

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        raise self._exc


@pytest.fixture
def client() -> falcon.testing.TestClient:
    """Build a test client with every handler registered."""
    app = falcon.asgi.App()
    app.add_route("/missing", _RaisingResource(ArtifactNotFoundError("a", "gone")))
    app.add_route("/unreadable", _RaisingResource(ArtifactReadError("a", "EACCES")))
    app.add_route("/bad", _RaisingResource(InvalidInputError("must be set")))
    app.add_route(
        "/bad-field", _RaisingResource(InvalidInputError("empty", field="tag"))
    )
    app.add_route(
        "/runtime",
        _RaisingResource(ContainerRuntimeError("no such image", status_code=404)),
    )
    app.add_route("/no-runtime", _RaisingResource(RuntimeUnavailableError()))
    register_error_handlers(app)
    return falcon.testing.TestClient(app)


@pytest.mark.parametrize(
    ("path", "status", "description"),
    [
        ("/missing", falcon.HTTP_404, "gone"),
        ("/unreadable", falcon.HTTP_500, "EACCES"),
        ("/bad", falcon.HTTP_400, "must be set"),
        ("/runtime", falcon.HTTP_404, "no such image"),
    ],
)
def test_handler_maps_status_and_description(
    client: falcon.testing.TestClient, path: str, status: str, description: str
) -> None:
    """Each handler sets its status and carries the underlying message."""
    result = client.simulate_get(path)

    assert result.status == status, f"unexpected status for {path}"
    assert result.json["description"] == description, "missing message"
    assert "title" in result.json, "missing title"


def test_invalid_input_names_field(client: falcon.testing.TestClient) -> None:
    """InvalidInputError includes the offending field when known."""
    result = client.simulate_get("/bad-field")

    assert result.json["field"] == "tag", "missing field name"


def test_invalid_input_without_field_omits_key(
    client: falcon.testing.TestClient,
) -> None:
    """No field key is sent when none was named."""
    result = client.simulate_get("/bad")

    assert "field" not in result.json, "unexpected field key"


def test_runtime_unavailable_is_500(client: falcon.testing.TestClient) -> None:
    """An absent runtime maps to 500."""
    result = client.simulate_get("/no-runtime")

    assert result.status == falcon.HTTP_500, "expected HTTP 500"


def test_container_runtime_error_defaults_to_500() -> None:
    """Errors without a daemon status use 500."""
    assert ContainerRuntimeError("refused").status_code == 500
