"""Container image resources for operators.

``GET /docker/images`` lists images known to the container runtime.
``POST /docker/image`` builds an image from ``{"remote": ..., "tag": ...}``
and streams the runtime's progress records back as newline-delimited JSON.

A build the runtime refuses outright is reported with the runtime's own
status code and message. Once the first byte of a build stream has been
sent the status line is committed, so later failures are logged and end
the stream; they cannot change the status code.
"""

from __future__ import annotations

import asyncio
import typing as typ

import falcon
import msgspec

from autotest_gateway.api.errors import InvalidInputError
from autotest_gateway.containers.client import BuildRequest
from autotest_gateway.containers.errors import (
    ContainerRuntimeError,
    RuntimeUnavailableError,
)
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

    from autotest_gateway.containers.client import BuildStream, DockerRuntimeClient
    from autotest_gateway.engine.registry import EngineRegistry

__all__ = ["ImageBuildResource", "ImageListResource", "stream_build_output"]

logger = get_logger(__name__)

NDJSON = "application/x-ndjson"


def _require_runtime(registry: EngineRegistry) -> DockerRuntimeClient:
    runtime = registry.get_container_runtime_client()
    if runtime is None:
        raise RuntimeUnavailableError
    return runtime


async def stream_build_output(
    stream: BuildStream, tag: str
) -> cabc.AsyncIterator[bytes]:
    """Yield each build record as one JSON line, as it arrives.

    A record carrying ``error`` or a runtime failure ends the stream after
    being logged. The build stream is closed however iteration ends,
    including when the client disconnects.
    """
    try:
        async for record in stream:
            yield msgspec.json.encode(record) + b"\n"
            if "error" in record:
                log_error(logger, "Error building image %s: %s", tag, record["error"])
                return
        log_info(logger, "Finished building image %s", tag)
    except ContainerRuntimeError as exc:
        log_exception(logger, f"Build stream for {tag} failed: {exc.message}", exc)
    except (GeneratorExit, asyncio.CancelledError):
        log_warning(logger, "Client went away during build of %s", tag)
        raise
    finally:
        stream.close()


class ImageListResource:
    """``GET /docker/images``: the runtime's image list, verbatim."""

    def __init__(self, registry: EngineRegistry) -> None:
        """Configure the resource with the shared registry."""
        self._registry = registry

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Return the runtime's images as a JSON array.

        Raises
        ------
        RuntimeUnavailableError
            If this deployment has no container runtime.
        ContainerRuntimeError
            If the runtime call fails.

        """
        runtime = _require_runtime(self._registry)
        resp.media = await runtime.list_images()
        resp.status = falcon.HTTP_200


class ImageBuildResource:
    """``POST /docker/image``: build an image and stream its progress."""

    def __init__(self, registry: EngineRegistry) -> None:
        """Configure the resource with the shared registry."""
        self._registry = registry

    async def on_post(self, req: Request, resp: Response) -> None:
        """Start a build and stream its output as NDJSON.

        Raises
        ------
        InvalidInputError
            If the body is not ``{"remote": str, "tag": str}``.
        RuntimeUnavailableError
            If this deployment has no container runtime.
        ContainerRuntimeError
            If the runtime rejects the build before any output.

        """
        request = await self._read_request(req)
        runtime = _require_runtime(self._registry)

        stream = await runtime.build_image(request)
        log_info(logger, "Building image %s from %s", request.tag, request.remote)

        resp.status = falcon.HTTP_200
        resp.content_type = NDJSON
        resp.stream = stream_build_output(stream, request.tag)

    @staticmethod
    async def _read_request(req: Request) -> BuildRequest:
        try:
            body = await req.get_media()
        except falcon.MediaNotFoundError as exc:
            msg = "request body is required"
            raise InvalidInputError(msg) from exc
        except falcon.MediaMalformedError as exc:
            msg = "request body must be JSON"
            raise InvalidInputError(msg) from exc

        try:
            request = msgspec.convert(body, type=BuildRequest)
        except msgspec.ValidationError as exc:
            raise InvalidInputError(str(exc)) from exc

        for field, value in (("remote", request.remote), ("tag", request.tag)):
            if not value.strip():
                msg = "must not be empty"
                raise InvalidInputError(msg, field=field)
        return request
