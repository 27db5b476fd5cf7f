"""ASGI lifespan middleware: registry startup/shutdown and the task supervisor.

``TaskSupervisor`` installs an event-loop exception handler at startup. It
observes asynchronous failures that escaped every request-level handler,
logs them, and keeps the process running. It does not release resources
held by the failed task; the streaming paths close their own files and
build streams in ``finally`` blocks instead.

Usage
-----
Register both middleware components when creating the app::

    app = falcon.asgi.App(
        middleware=[TaskSupervisor(), RegistryLifecycle(registry)]
    )

"""

from __future__ import annotations

import asyncio
import typing as typ

from autotest_gateway.logging import get_logger, log_error, log_exception, log_info

if typ.TYPE_CHECKING:
    from autotest_gateway.engine.registry import EngineRegistry

__all__ = ["RegistryLifecycle", "TaskSupervisor", "supervise_loop"]

logger = get_logger(__name__)


def _handle_loop_exception(
    _loop: asyncio.AbstractEventLoop, context: dict[str, typ.Any]
) -> None:
    message = context.get("message") or "Unhandled asynchronous failure"
    exc = context.get("exception")
    task = context.get("task") or context.get("future")
    if isinstance(exc, BaseException):
        log_exception(logger, f"{message} (task={task!r})", exc)
    else:
        log_error(logger, "%s (task=%r)", message, task)


def supervise_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Log, rather than propagate, failures that escape ``loop``'s tasks."""
    loop.set_exception_handler(_handle_loop_exception)


class TaskSupervisor:
    """Install the loop exception handler when the ASGI app starts."""

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Attach the supervisor to the running loop."""
        supervise_loop(asyncio.get_running_loop())
        log_info(logger, "Registered unhandled-failure supervisor")


class RegistryLifecycle:
    """Build the engine eagerly at startup and release it at shutdown."""

    def __init__(self, registry: EngineRegistry) -> None:
        """Manage ``registry``'s collaborators."""
        self._registry = registry

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Construct the engine before the first request arrives."""
        self._registry.get_engine()

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Release the registry's collaborators."""
        await self._registry.aclose()
        log_info(logger, "Engine collaborators released")
