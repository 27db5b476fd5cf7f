"""Operator-facing exceptions and their Falcon error handlers.

Resources on the operator routes (artifacts and container images) raise
these exceptions; the handlers registered by ``create_app`` turn them into
``{"title", "description"}`` JSON responses that carry the underlying
message. The public webhook route never uses them: it flattens every
failure to a generic 400 itself.

Usage
-----
Register the handlers on a Falcon app::

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from autotest_gateway.containers.errors import ContainerRuntimeError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "ArtifactNotFoundError",
    "ArtifactReadError",
    "InvalidInputError",
    "handle_artifact_not_found",
    "handle_artifact_read_error",
    "handle_container_runtime_error",
    "handle_invalid_input",
    "register_error_handlers",
]


class InvalidInputError(Exception):
    """Raised for malformed request bodies on operator routes (HTTP 400).

    Attributes
    ----------
    reason
        Human-readable description of the problem.
    field
        Offending field, when one can be named.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a reason and optional field name."""
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}" if field is not None else reason)


class ArtifactNotFoundError(Exception):
    """Raised when a requested artifact does not exist (HTTP 404)."""

    def __init__(self, relative_path: str, message: str) -> None:
        """Record the requested path and the filesystem's message."""
        self.relative_path = relative_path
        self.message = message
        super().__init__(message)


class ArtifactReadError(Exception):
    """Raised when an artifact exists but cannot be read (HTTP 500)."""

    def __init__(self, relative_path: str, message: str) -> None:
        """Record the requested path and the filesystem's message."""
        self.relative_path = relative_path
        self.message = message
        super().__init__(message)


def _error_media(title: str, description: str) -> dict[str, str]:
    return {"title": title, "description": description}


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to HTTP 400."""
    resp.status = falcon.HTTP_400
    media = _error_media("Invalid input", ex.reason)
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_container_runtime_error(
    _req: Request,
    resp: Response,
    ex: ContainerRuntimeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map runtime failures to the status code the runtime reported.

    ``RuntimeUnavailableError`` and failures that never reached the daemon
    carry 500.
    """
    resp.status = ex.status_code
    resp.media = _error_media("Container runtime error", ex.message)


async def handle_artifact_not_found(
    _req: Request,
    resp: Response,
    ex: ArtifactNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ArtifactNotFoundError`` to HTTP 404."""
    resp.status = falcon.HTTP_404
    resp.media = _error_media("Resource not found", ex.message)


async def handle_artifact_read_error(
    _req: Request,
    resp: Response,
    ex: ArtifactReadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ArtifactReadError`` to HTTP 500."""
    resp.status = falcon.HTTP_500
    resp.media = _error_media("Resource unreadable", ex.message)


def register_error_handlers(app: App) -> None:
    """Install every operator-route error handler on ``app``."""
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(ContainerRuntimeError, handle_container_runtime_error)
    app.add_error_handler(ArtifactNotFoundError, handle_artifact_not_found)
    app.add_error_handler(ArtifactReadError, handle_artifact_read_error)
