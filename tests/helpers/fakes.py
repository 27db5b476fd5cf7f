"""In-memory doubles for the gateway's collaborators.

``FakeCollaborators.factories`` wires the doubles into an
``EngineRegistry`` so tests exercise the real registry and Falcon app
without a Docker daemon, portal backend or broker.
"""

from __future__ import annotations

import dataclasses
import types
import typing as typ

from autotest_gateway.containers.errors import ContainerRuntimeError
from autotest_gateway.engine.registry import RegistryFactories
from autotest_gateway.github.models import target_kind
from autotest_gateway.portal.models import PortalConfiguration

if typ.TYPE_CHECKING:
    from autotest_gateway.config import GatewayConfig
    from autotest_gateway.containers.client import BuildRequest
    from autotest_gateway.github.models import (
        CommentTarget,
        CommitTarget,
        PushTarget,
    )


class FakeEngine:
    """Engine double recording the targets it receives."""

    def __init__(self) -> None:
        """Start with no recorded calls."""
        self.pushes: list[PushTarget] = []
        self.comments: list[CommentTarget] = []
        self.error: Exception | None = None

    @property
    def call_count(self) -> int:
        """Return the number of handler invocations."""
        return len(self.pushes) + len(self.comments)

    async def handle_push_event(self, target: PushTarget) -> None:
        """Record a push, or raise the configured error."""
        if self.error is not None:
            raise self.error
        self.pushes.append(target)

    async def handle_comment_event(self, target: CommentTarget) -> None:
        """Record a comment, or raise the configured error."""
        if self.error is not None:
            raise self.error
        self.comments.append(target)


class FakePortal:
    """Class portal double serving a fixed default deliverable."""

    def __init__(self, default_deliverable: str | None = "d1") -> None:
        """Serve ``default_deliverable`` until ``error`` is set."""
        self.default_deliverable = default_deliverable
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    async def get_configuration(self) -> PortalConfiguration:
        """Return the configured deliverable."""
        self.calls += 1
        if self.error is not None:
            raise self.error
        return PortalConfiguration(default_deliverable=self.default_deliverable)

    async def aclose(self) -> None:
        """Mark the portal closed."""
        self.closed = True


class FakeDataStore:
    """Data store double deduplicating targets by kind, repo and commit."""

    def __init__(self) -> None:
        """Start empty."""
        self.saved: list[CommitTarget] = []
        self._ids: dict[tuple[str, str, str, str], int] = {}
        self.closed = False

    async def save_target(
        self, target: CommitTarget
    ) -> tuple[types.SimpleNamespace, bool]:
        """Store ``target`` unless an equivalent one exists."""
        key = (
            target_kind(target),
            target.repo_id,
            target.commit_sha,
            target.timestamp.isoformat(),
        )
        if key in self._ids:
            return (types.SimpleNamespace(id=self._ids[key]), False)
        self.saved.append(target)
        self._ids[key] = len(self.saved)
        return (types.SimpleNamespace(id=self._ids[key]), True)

    async def aclose(self) -> None:
        """Mark the store closed."""
        self.closed = True


class FakeBuildStream:
    """Build stream double replaying canned progress records."""

    def __init__(
        self,
        records: list[dict[str, typ.Any]],
        *,
        error: ContainerRuntimeError | None = None,
    ) -> None:
        """Replay ``records``, then raise ``error`` if one is given."""
        self._records = list(records)
        self._error = error
        self.closed = False

    def __aiter__(self) -> FakeBuildStream:
        """Return the stream itself."""
        return self

    async def __anext__(self) -> dict[str, typ.Any]:
        """Return the next canned record."""
        if self.closed:
            raise StopAsyncIteration
        if self._records:
            return self._records.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        raise StopAsyncIteration

    def close(self) -> None:
        """Mark the stream closed."""
        self.closed = True


class FakeRuntime:
    """Container runtime double with canned images and build output."""

    def __init__(self) -> None:
        """Start with one image and a two-record build."""
        self.images: list[dict[str, typ.Any]] = [
            {"Id": "sha256:abc", "RepoTags": ["grader:latest"]}
        ]
        self.build_records: list[dict[str, typ.Any]] = [
            {"stream": "Step 1/2 : FROM python:3.12\n"},
            {"stream": "Successfully tagged grader:1\n"},
        ]
        self.stream_error: ContainerRuntimeError | None = None
        self.error: ContainerRuntimeError | None = None
        self.builds: list[BuildRequest] = []
        self.streams: list[FakeBuildStream] = []
        self.closed = False

    async def list_images(self) -> list[dict[str, typ.Any]]:
        """Return the canned images, or raise the configured error."""
        if self.error is not None:
            raise self.error
        return self.images

    async def build_image(self, request: BuildRequest) -> FakeBuildStream:
        """Record the request and return a canned stream."""
        if self.error is not None:
            raise self.error
        self.builds.append(request)
        stream = FakeBuildStream(self.build_records, error=self.stream_error)
        self.streams.append(stream)
        return stream

    def close(self) -> None:
        """Mark the runtime closed."""
        self.closed = True


@dataclasses.dataclass(slots=True)
class FakeCollaborators:
    """Fakes served by the test registry, plus construction counters."""

    engine: FakeEngine = dataclasses.field(default_factory=FakeEngine)
    portal: FakePortal = dataclasses.field(default_factory=FakePortal)
    data_store: FakeDataStore = dataclasses.field(default_factory=FakeDataStore)
    runtime: FakeRuntime | None = dataclasses.field(default_factory=FakeRuntime)
    builds: dict[str, int] = dataclasses.field(default_factory=dict)

    def _count(self, name: str) -> None:
        self.builds[name] = self.builds.get(name, 0) + 1

    def factories(self) -> RegistryFactories:
        """Return registry factories that hand out these fakes."""

        def runtime(_config: GatewayConfig) -> typ.Any:  # noqa: ANN401 - fake
            self._count("runtime")
            return self.runtime

        def portal(_config: GatewayConfig) -> typ.Any:  # noqa: ANN401 - fake
            self._count("portal")
            return self.portal

        def data_store(_config: GatewayConfig) -> typ.Any:  # noqa: ANN401 - fake
            self._count("data_store")
            return self.data_store

        def engine(*_args: object) -> typ.Any:  # noqa: ANN401 - fake
            self._count("engine")
            return self.engine

        return RegistryFactories(
            runtime=runtime, portal=portal, data_store=data_store, engine=engine
        )

