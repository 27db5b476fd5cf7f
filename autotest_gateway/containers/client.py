"""Async facade over the Docker Engine API.

The ``docker`` SDK is synchronous, so every daemon round trip runs in a
worker thread through :func:`asyncio.to_thread`. Build output is exposed as
a :class:`BuildStream`: a lazy, finite, non-restartable async iterator over
the daemon's decoded progress records.

Usage
-----
List images and stream a build::

    client = DockerRuntimeClient(docker.DockerClient(base_url=..., version="1.41"))
    images = await client.list_images()
    stream = await client.build_image(BuildRequest(remote=url, tag="grader:1"))
    async for record in stream:
        print(record.get("stream", ""))

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import functools
import typing as typ
from http import HTTPStatus

import msgspec
from docker.errors import APIError, DockerException

from autotest_gateway.containers.errors import ContainerRuntimeError
from autotest_gateway.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import docker

logger = get_logger(__name__)

ImageDescriptor: typ.TypeAlias = dict[str, typ.Any]
BuildRecord: typ.TypeAlias = dict[str, typ.Any]

# Sources the daemon fetches itself; anything else would be read from the
# gateway's own filesystem by the SDK.
REMOTE_PREFIXES = ("http://", "https://", "git://", "github.com/", "git@")

_EXHAUSTED: typ.Final = object()


class BuildRequest(msgspec.Struct, kw_only=True, frozen=True):
    """Image build parameters: a remote build context and the image tag."""

    remote: str
    tag: str


def _runtime_error(exc: Exception) -> ContainerRuntimeError:
    """Translate a Docker SDK or transport failure."""
    if isinstance(exc, APIError):
        message = exc.explanation or str(exc)
        return ContainerRuntimeError(str(message), status_code=exc.status_code)
    return ContainerRuntimeError(str(exc))


class BuildStream:
    """Progress records of one image build, pulled from the daemon on demand.

    The first record is fetched before the stream is handed out so that an
    outright rejection surfaces as an exception from
    :meth:`DockerRuntimeClient.build_image` rather than mid-stream.
    """

    def __init__(
        self,
        records: cabc.Iterator[BuildRecord],
        first: BuildRecord | None,
    ) -> None:
        """Wrap the SDK iterator, replaying ``first`` before pulling more."""
        self._records = records
        self._pending = first
        self._exhausted = first is None
        self._in_flight = False

    def __aiter__(self) -> BuildStream:
        """Return the stream itself; it can be consumed only once."""
        return self

    async def __anext__(self) -> BuildRecord:
        """Return the next progress record.

        Raises
        ------
        ContainerRuntimeError
            If the daemon connection fails mid-build.

        """
        if self._pending is not None:
            record, self._pending = self._pending, None
            return record
        if self._exhausted:
            raise StopAsyncIteration

        self._in_flight = True
        pull = asyncio.ensure_future(
            asyncio.to_thread(next, self._records, _EXHAUSTED)
        )
        try:
            record = await asyncio.shield(pull)
        except asyncio.CancelledError:
            # The worker thread is still inside the generator; it stays in
            # flight until the pull settles.
            pull.add_done_callback(self._pull_settled)
            raise
        except (DockerException, OSError) as exc:
            self._exhausted = True
            raise _runtime_error(exc) from exc
        finally:
            if pull.done():
                self._in_flight = False

        if record is _EXHAUSTED:
            self.close()
            raise StopAsyncIteration
        return typ.cast("BuildRecord", record)

    def _pull_settled(self, pull: asyncio.Future[object]) -> None:
        """Finish a pull whose awaiting task was cancelled."""
        if not pull.cancelled():
            pull.exception()
        self._in_flight = False
        if self._exhausted:
            self.close()

    def close(self) -> None:
        """Stop the build stream and release the SDK generator."""
        self._exhausted = True
        self._pending = None
        # A generator still running in a worker thread cannot be closed; it
        # is closed once the pull settles.
        close = getattr(self._records, "close", None)
        if close is not None and not self._in_flight:
            close()


class DockerRuntimeClient:
    """Container runtime client backed by a ``docker.DockerClient``."""

    def __init__(self, client: docker.DockerClient) -> None:
        """Wrap an already configured SDK client."""
        self._client = client

    async def list_images(self) -> list[ImageDescriptor]:
        """Return the daemon's image list exactly as reported.

        Raises
        ------
        ContainerRuntimeError
            If the daemon call fails.

        """
        try:
            return await asyncio.to_thread(self._client.api.images)
        except (DockerException, OSError) as exc:
            raise _runtime_error(exc) from exc

    async def build_image(self, request: BuildRequest) -> BuildStream:
        """Start building ``request.remote`` as ``request.tag``.

        The daemon's first response is awaited before returning, so a build
        the daemon refuses (unreachable or malformed remote) raises here
        with the daemon's status code and message.

        Raises
        ------
        ContainerRuntimeError
            If the source is not a remote build context, or the daemon
            rejects or cannot start the build.

        """
        if not request.remote.startswith(REMOTE_PREFIXES):
            msg = f"remote must be a URL or git reference, got {request.remote!r}"
            raise ContainerRuntimeError(msg, status_code=HTTPStatus.BAD_REQUEST)

        start = functools.partial(
            self._client.api.build,
            path=request.remote,
            tag=request.tag,
            rm=True,
            decode=True,
        )
        try:
            records = await asyncio.to_thread(start)
            first = await asyncio.to_thread(next, records, _EXHAUSTED)
        except (DockerException, OSError) as exc:
            raise _runtime_error(exc) from exc

        log_debug(logger, "Build of %s from %s started", request.tag, request.remote)
        if first is _EXHAUSTED:
            return BuildStream(iter(()), None)
        return BuildStream(records, typ.cast("BuildRecord", first))

    def close(self) -> None:
        """Close the SDK client's HTTP session."""
        self._client.close()


__all__ = [
    "REMOTE_PREFIXES",
    "BuildRecord",
    "BuildRequest",
    "BuildStream",
    "DockerRuntimeClient",
    "ImageDescriptor",
]
