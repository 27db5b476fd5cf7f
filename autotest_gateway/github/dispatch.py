"""Route classified webhook events to the engine."""

from __future__ import annotations

import typing as typ

from autotest_gateway.github.errors import UnsupportedEventError
from autotest_gateway.github.normalize import process_comment, process_push
from autotest_gateway.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    from autotest_gateway.engine.registry import EngineRegistry
    from autotest_gateway.github.models import AnyCommitTarget

logger = get_logger(__name__)

PING_EVENT = "ping"
COMMENT_EVENT = "commit_comment"
PUSH_EVENT = "push"

HANDLED_EVENTS = frozenset({COMMENT_EVENT, PUSH_EVENT})


class WebhookDispatcher:
    """Normalize a webhook body and invoke the matching engine handler.

    Each call makes at most one engine invocation. No deduplication or
    ordering is applied; redelivered events reach the engine again.
    """

    def __init__(self, registry: EngineRegistry, *, bot_name: str) -> None:
        """Dispatch through ``registry``'s engine and class portal."""
        self._registry = registry
        self._bot_name = bot_name

    async def dispatch(self, event: str, body: object) -> AnyCommitTarget | None:
        """Handle one ``event`` delivery.

        Returns
        -------
        AnyCommitTarget | None
            The target passed to the engine, or ``None`` for a push that
            deleted its branch (the engine is not called).

        Raises
        ------
        UnsupportedEventError
            If ``event`` is not ``commit_comment`` or ``push``; raised before
            the engine is constructed.
        NormalizationError
            If ``body`` does not match the event's payload contract.

        """
        if event not in HANDLED_EVENTS:
            raise UnsupportedEventError(event)

        engine = self._registry.get_engine()

        if event == COMMENT_EVENT:
            comment = process_comment(body, bot_name=self._bot_name)
            log_debug(logger, "Comment request: %s", comment)
            await engine.handle_comment_event(comment)
            return comment

        push = await process_push(body, self._registry.get_class_portal())
        if push is None:
            log_info(logger, "Push deleted its branch; nothing to test")
            return None
        log_debug(logger, "Push request: %s", push)
        await engine.handle_push_event(push)
        return push


__all__ = [
    "COMMENT_EVENT",
    "HANDLED_EVENTS",
    "PING_EVENT",
    "PUSH_EVENT",
    "WebhookDispatcher",
]
