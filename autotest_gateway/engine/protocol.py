"""Interfaces of the engine-side collaborators used by the gateway."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from autotest_gateway.engine.storage import CommitTargetRecord
    from autotest_gateway.github.models import (
        CommentTarget,
        CommitTarget,
        PushTarget,
    )


@typ.runtime_checkable
class AutoTestEngine(typ.Protocol):
    """Testing engine receiving normalized webhook requests.

    Handlers may be invoked concurrently for distinct events and may see
    redelivered or reordered events; implementations must tolerate both.
    """

    async def handle_push_event(self, target: PushTarget) -> None:
        """Accept a push for testing."""
        ...

    async def handle_comment_event(self, target: CommentTarget) -> None:
        """Accept a commit comment, which may request a test run."""
        ...


@typ.runtime_checkable
class DataStore(typ.Protocol):
    """Persistent store the engine records received targets in."""

    async def save_target(
        self, target: CommitTarget
    ) -> tuple[CommitTargetRecord, bool]:
        """Persist ``target``; return the row and whether it was new."""
        ...

    async def aclose(self) -> None:
        """Release database resources."""
        ...
