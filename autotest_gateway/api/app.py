"""Application factory for the AutoTest gateway's Falcon ASGI app.

Routes
------
``POST /githubWebhook``
    GitHub webhook deliveries.
``GET /resource/{path}``
    Persisted build artifacts.
``GET /docker/images``
    Container images known to the runtime.
``POST /docker/image``
    Build a container image; output is streamed.

Usage
-----
Build the app around an explicit registry::

    config = GatewayConfig.from_env()
    app = create_app(AppDependencies(config=config))

"""

from __future__ import annotations

import dataclasses as dc

import falcon.asgi

from autotest_gateway.api.artifacts.resources import ArtifactResource
from autotest_gateway.api.docker.resources import (
    ImageBuildResource,
    ImageListResource,
)
from autotest_gateway.api.errors import register_error_handlers
from autotest_gateway.api.lifecycle import RegistryLifecycle, TaskSupervisor
from autotest_gateway.api.webhooks.resources import GitHubWebhookResource
from autotest_gateway.config import GatewayConfig
from autotest_gateway.engine.registry import EngineRegistry
from autotest_gateway.github.dispatch import WebhookDispatcher

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators for the Falcon application.

    Attributes
    ----------
    config
        Gateway configuration, used when no registry is supplied.
    registry
        Shared engine registry. When omitted, one is built from ``config``;
        when supplied, its own configuration wins.

    """

    config: GatewayConfig = dc.field(default_factory=GatewayConfig)
    registry: EngineRegistry | None = None

    def resolve_registry(self) -> EngineRegistry:
        """Return the supplied registry or a new one for ``config``."""
        return self.registry or EngineRegistry(self.config)


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Create and configure the gateway's Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Configuration and registry; defaults to ``GatewayConfig()`` with a
        fresh registry.

    Returns
    -------
    falcon.asgi.App
        App with the webhook, artifact and image routes, the operator error
        handlers, and lifespan middleware.

    """
    deps = dependencies or AppDependencies()
    registry = deps.resolve_registry()
    config = registry.config
    dispatcher = WebhookDispatcher(registry, bot_name=config.bot_name)

    app = falcon.asgi.App(  # type: ignore[no-matching-overload]  # Falcon stubs
        middleware=[TaskSupervisor(), RegistryLifecycle(registry)]
    )

    app.add_route("/githubWebhook", GitHubWebhookResource(dispatcher))
    app.add_route("/resource/{path:path}", ArtifactResource(config.persist_dir))
    app.add_route("/docker/images", ImageListResource(registry))
    app.add_route("/docker/image", ImageBuildResource(registry))

    register_error_handlers(app)
    return app
