"""Persisted artifact retrieval.

``GET /resource/{path}`` streams a file from the persisted-artifact root.
Every request reopens the file; nothing is cached.
"""

from __future__ import annotations

import asyncio
import os
import typing as typ
from pathlib import Path

import falcon

from autotest_gateway.api.errors import ArtifactNotFoundError, ArtifactReadError
from autotest_gateway.logging import (
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

__all__ = ["ArtifactResource", "resolve_artifact_path", "stream_file"]

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024
OCTET_STREAM = "application/octet-stream"


def resolve_artifact_path(root: Path, relative_path: str) -> Path | None:
    """Return ``relative_path`` joined under ``root``, or None if it escapes.

    The join is normalized lexically, so ``..`` segments cannot leave the
    root.

    >>> resolve_artifact_path(Path("/data"), "runs/1/log.txt")
    PosixPath('/data/runs/1/log.txt')
    >>> resolve_artifact_path(Path("/data"), "../etc/passwd") is None
    True

    """
    base = Path(os.path.normpath(root))
    candidate = Path(os.path.normpath(base / relative_path.lstrip("/")))
    if candidate != base and base not in candidate.parents:
        return None
    return candidate


async def stream_file(
    handle: typ.BinaryIO, path: Path
) -> cabc.AsyncIterator[bytes]:
    """Yield ``handle``'s contents in chunks, closing it when done.

    The response status is already sent when a read fails mid-stream, so
    the failure is logged and the stream ends early.
    """
    try:
        while chunk := await asyncio.to_thread(handle.read, CHUNK_SIZE):
            yield chunk
    except OSError as exc:
        log_exception(logger, f"Reading {path} failed mid-stream", exc)
    except (GeneratorExit, asyncio.CancelledError):
        log_warning(logger, "Client went away while streaming %s", path)
        raise
    finally:
        handle.close()


class ArtifactResource:
    """``GET /resource/{path}``: stream a persisted artifact."""

    def __init__(self, root: Path) -> None:
        """Serve files below ``root``."""
        self._root = root

    async def on_get(self, _req: Request, resp: Response, *, path: str) -> None:
        """Stream the artifact at ``path``.

        Raises
        ------
        ArtifactNotFoundError
            If the file does not exist or ``path`` leaves the root.
        ArtifactReadError
            If the file exists but cannot be opened.

        """
        target = resolve_artifact_path(self._root, path)
        if target is None:
            log_error(logger, "Requested resource outside artifact root: %s", path)
            msg = f"No such resource: {path}"
            raise ArtifactNotFoundError(path, msg)

        log_info(logger, "Fetching resource %s", target)
        try:
            handle = await asyncio.to_thread(target.open, "rb")
        except FileNotFoundError as exc:
            log_error(logger, "Requested resource does not exist: %s", target)
            raise ArtifactNotFoundError(path, str(exc)) from exc
        except OSError as exc:
            log_error(logger, "Error reading requested resource %s: %s", target, exc)
            raise ArtifactReadError(path, str(exc)) from exc

        resp.status = falcon.HTTP_200
        resp.content_type = OCTET_STREAM
        resp.stream = stream_file(handle, target)
