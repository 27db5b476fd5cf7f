"""Unit tests for the ASGI lifespan middleware and failure supervisor."""

from __future__ import annotations

import asyncio
import typing as typ
from unittest import mock

import pytest

from autotest_gateway.api.lifecycle import (
    RegistryLifecycle,
    TaskSupervisor,
    supervise_loop,
)

if typ.TYPE_CHECKING:
    from autotest_gateway.engine.registry import EngineRegistry
    from tests.helpers.fakes import FakeCollaborators


@pytest.mark.asyncio
async def test_escaped_task_failure_is_logged_not_raised() -> None:
    """A failure no one awaited is logged and the loop keeps running."""
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    supervise_loop(loop)
    try:
        with mock.patch("autotest_gateway.api.lifecycle.log_exception") as logged:
            exc = RuntimeError("stream writer vanished")
            loop.call_exception_handler(
                {"message": "Task exception was never retrieved", "exception": exc}
            )
    finally:
        loop.set_exception_handler(previous)

    logged.assert_called_once()
    assert logged.call_args.args[2] is exc
    assert "never retrieved" in logged.call_args.args[1]


@pytest.mark.asyncio
async def test_context_without_exception_is_logged_as_error() -> None:
    """Contexts carrying only a message are still reported."""
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    supervise_loop(loop)
    try:
        with mock.patch("autotest_gateway.api.lifecycle.log_error") as logged:
            loop.call_exception_handler({"message": "Unclosed transport"})
    finally:
        loop.set_exception_handler(previous)

    logged.assert_called_once()


@pytest.mark.asyncio
async def test_task_supervisor_installs_handler() -> None:
    """Startup attaches the supervisor to the running loop."""
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    try:
        await TaskSupervisor().process_startup({}, {})

        assert loop.get_exception_handler() is not None
    finally:
        loop.set_exception_handler(previous)


@pytest.mark.asyncio
async def test_registry_lifecycle_builds_and_releases(
    registry: EngineRegistry, collaborators: FakeCollaborators
) -> None:
    """The engine is built at startup and collaborators closed at shutdown."""
    lifecycle = RegistryLifecycle(registry)

    await lifecycle.process_startup({}, {})
    assert collaborators.builds["engine"] == 1

    await lifecycle.process_shutdown({}, {})
    assert collaborators.portal.closed
    assert collaborators.data_store.closed
