"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest

from autotest_gateway.api.app import AppDependencies, create_app
from autotest_gateway.config import GatewayConfig
from autotest_gateway.engine.registry import EngineRegistry
from tests.helpers.fakes import FakeCollaborators

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def gateway_config(tmp_path: Path) -> GatewayConfig:
    """Return a standard-course configuration rooted in ``tmp_path``."""
    return GatewayConfig(
        name="cpsc310",
        persist_dir=tmp_path,
        bot_name="autobot",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'autotest.db'}",
    )


@pytest.fixture
def collaborators() -> FakeCollaborators:
    """Return a fresh set of collaborator fakes."""
    return FakeCollaborators()


@pytest.fixture
def registry(
    gateway_config: GatewayConfig, collaborators: FakeCollaborators
) -> EngineRegistry:
    """Return a registry that builds the collaborator fakes."""
    return EngineRegistry(gateway_config, factories=collaborators.factories())


@pytest.fixture
def gateway_client(registry: EngineRegistry) -> falcon.testing.TestClient:
    """Return a Falcon test client for the gateway app."""
    return falcon.testing.TestClient(create_app(AppDependencies(registry=registry)))
