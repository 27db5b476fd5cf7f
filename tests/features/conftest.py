"""Shared state and steps for gateway BDD scenarios."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, then

from autotest_gateway.api.app import AppDependencies, create_app
from autotest_gateway.engine.registry import EngineRegistry
from tests.helpers.fakes import FakeCollaborators

if typ.TYPE_CHECKING:
    from falcon.testing.client import Result

    from autotest_gateway.config import GatewayConfig


class GatewayContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    client: falcon.testing.TestClient
    collaborators: FakeCollaborators
    response: Result


@pytest.fixture
def gateway_context() -> GatewayContext:
    """Provide empty scenario state."""
    return {}


@given("a running AutoTest gateway")
def given_running_gateway(
    gateway_context: GatewayContext,
    gateway_client: falcon.testing.TestClient,
    collaborators: FakeCollaborators,
) -> None:
    """Serve the gateway app over fake collaborators."""
    gateway_context["client"] = gateway_client
    gateway_context["collaborators"] = collaborators


@given("an AutoTest gateway without a container runtime")
def given_gateway_without_runtime(
    gateway_context: GatewayContext, gateway_config: GatewayConfig
) -> None:
    """Serve the gateway app for a deployment with no runtime client."""
    collaborators = FakeCollaborators(runtime=None)
    registry = EngineRegistry(gateway_config, factories=collaborators.factories())
    gateway_context["client"] = falcon.testing.TestClient(
        create_app(AppDependencies(registry=registry))
    )
    gateway_context["collaborators"] = collaborators


@then(parsers.parse("the response status is {status:d}"))
def then_response_status(gateway_context: GatewayContext, status: int) -> None:
    """Assert the HTTP response status code."""
    response = gateway_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}"
    )


@then(parsers.parse('the response description is "{description}"'))
def then_response_description(
    gateway_context: GatewayContext, description: str
) -> None:
    """Assert the error description returned to the caller."""
    response = gateway_context["response"]
    assert response.json["description"] == description, (
        f"unexpected description {response.json!r}"
    )
