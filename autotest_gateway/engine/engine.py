"""Engine that records commit targets and queues them for grading.

``QueuedAutoTest`` is the engine bound by the registry. It persists every
target it receives and hands runnable ones to the grading workers as
Dramatiq messages on the ``autotest`` queue. The workers, which run student
code inside containers, consume ``run_commit_target`` messages and are not
part of this package.
"""

from __future__ import annotations

import asyncio
import typing as typ

import dramatiq

from autotest_gateway.github.models import target_kind, to_json_dict
from autotest_gateway.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from autotest_gateway.containers.client import DockerRuntimeClient
    from autotest_gateway.engine.protocol import DataStore
    from autotest_gateway.github.models import (
        CommentTarget,
        CommitTarget,
        PushTarget,
    )
    from autotest_gateway.portal.protocol import ClassPortal

logger = get_logger(__name__)

GRADING_QUEUE = "autotest"
GRADING_ACTOR = "run_commit_target"


class QueuedAutoTest:
    """Record targets and enqueue the ones that should be graded.

    A push is queued the first time it is seen. A comment is queued the
    first time it is seen if it mentions the bot. Redeliveries are recorded
    once and never queued twice. With no container runtime (the test
    deployment) targets are recorded but nothing is queued.
    """

    def __init__(
        self,
        data_store: DataStore,
        portal: ClassPortal,
        runtime: DockerRuntimeClient | None,
        *,
        broker: dramatiq.Broker,
        queue_name: str = GRADING_QUEUE,
    ) -> None:
        """Bind the engine to its collaborators and the grading broker."""
        self._data_store = data_store
        self._portal = portal
        self._runtime = runtime
        self._broker = broker
        self._queue_name = queue_name
        broker.declare_queue(queue_name)

    @property
    def data_store(self) -> DataStore:
        """Return the store targets are recorded in."""
        return self._data_store

    @property
    def portal(self) -> ClassPortal:
        """Return the class portal bound at construction."""
        return self._portal

    @property
    def runtime(self) -> DockerRuntimeClient | None:
        """Return the container runtime client, ``None`` in test deployments."""
        return self._runtime

    async def handle_push_event(self, target: PushTarget) -> None:
        """Record ``target`` and queue it for grading if it is new."""
        await self._accept(target, wants_run=True)

    async def handle_comment_event(self, target: CommentTarget) -> None:
        """Record ``target`` and queue it if it is new and mentions the bot."""
        await self._accept(target, wants_run=target.bot_mentioned)

    async def _accept(self, target: CommitTarget, *, wants_run: bool) -> None:
        kind = target_kind(target)
        record, created = await self._data_store.save_target(target)
        if not created:
            log_info(
                logger,
                "Duplicate %s for %s@%s (record %d); not queued",
                kind,
                target.repo_id,
                target.commit_sha,
                record.id,
            )
            return
        if not wants_run:
            return
        if self._runtime is None:
            log_info(
                logger,
                "No container runtime; %s for %s@%s recorded only",
                kind,
                target.repo_id,
                target.commit_sha,
            )
            return

        message = dramatiq.Message(
            queue_name=self._queue_name,
            actor_name=GRADING_ACTOR,
            args=(),
            kwargs={"record_id": record.id, "target": to_json_dict(target)},
            options={},
        )
        await asyncio.to_thread(self._broker.enqueue, message)
        log_info(
            logger,
            "Queued %s for %s@%s (deliverable %s)",
            kind,
            target.repo_id,
            target.commit_sha,
            target.deliverable_id,
        )


__all__ = ["GRADING_ACTOR", "GRADING_QUEUE", "QueuedAutoTest"]
