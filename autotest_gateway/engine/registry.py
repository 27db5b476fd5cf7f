"""Process-wide handles for the engine and its collaborators.

``EngineRegistry`` builds each collaborator on first request and returns the
same instance afterwards. One registry is created by the application factory
and passed by reference to every resource that needs it.

Construction never awaits, so under a single event loop no two requests can
interleave inside it; the lock additionally covers ASGI servers that call in
from several threads.
"""

from __future__ import annotations

import dataclasses as dc
import threading
import typing as typ

from dramatiq.brokers.stub import StubBroker
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from autotest_gateway.containers.factory import create_runtime_client
from autotest_gateway.engine._broker import ensure_broker_configured
from autotest_gateway.engine.datastore import SQLAlchemyDataStore
from autotest_gateway.engine.engine import QueuedAutoTest
from autotest_gateway.logging import get_logger, log_info
from autotest_gateway.portal.factory import create_class_portal

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import dramatiq

    from autotest_gateway.config import GatewayConfig
    from autotest_gateway.containers.client import DockerRuntimeClient
    from autotest_gateway.engine.protocol import AutoTestEngine, DataStore
    from autotest_gateway.portal.protocol import ClassPortal

logger = get_logger(__name__)

_UNSET: typ.Final = object()


def create_data_store(config: GatewayConfig) -> DataStore:
    """Create the SQLAlchemy data store for ``config``'s database URL."""
    engine = create_async_engine(config.resolved_database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return SQLAlchemyDataStore(engine, session_factory)


def create_engine(
    config: GatewayConfig,
    data_store: DataStore,
    portal: ClassPortal,
    runtime: DockerRuntimeClient | None,
) -> AutoTestEngine:
    """Create the queueing engine bound to the three collaborators.

    Without a container runtime nothing is ever queued, so a deployment
    with no broker URL gets a private stub broker instead of requiring one.
    """
    broker: dramatiq.Broker
    if runtime is None and config.broker_url is None:
        broker = StubBroker()
    else:
        broker = ensure_broker_configured(config.broker_url)
    return QueuedAutoTest(data_store, portal, runtime, broker=broker)


@dc.dataclass(frozen=True, slots=True)
class RegistryFactories:
    """Constructors used by :class:`EngineRegistry`; tests swap in fakes."""

    runtime: cabc.Callable[[GatewayConfig], DockerRuntimeClient | None] = (
        create_runtime_client
    )
    portal: cabc.Callable[[GatewayConfig], ClassPortal] = create_class_portal
    data_store: cabc.Callable[[GatewayConfig], DataStore] = create_data_store
    engine: cabc.Callable[
        [GatewayConfig, DataStore, ClassPortal, DockerRuntimeClient | None],
        AutoTestEngine,
    ] = create_engine


class EngineRegistry:
    """Lazily constructed, shared engine collaborators.

    Parameters
    ----------
    config
        Gateway configuration selecting each collaborator's variant.
    factories
        Constructors for the collaborators; defaults build the real ones.

    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        factories: RegistryFactories | None = None,
    ) -> None:
        """Store configuration; nothing is constructed until first use."""
        self._config = config
        self._factories = factories or RegistryFactories()
        self._lock = threading.RLock()
        # ``None`` is a valid runtime handle, so absence uses a sentinel.
        self._runtime: object = _UNSET
        self._portal: ClassPortal | None = None
        self._data_store: DataStore | None = None
        self._engine: AutoTestEngine | None = None

    @property
    def config(self) -> GatewayConfig:
        """Return the gateway configuration."""
        return self._config

    def get_container_runtime_client(self) -> DockerRuntimeClient | None:
        """Return the runtime client, creating it on first call.

        ``None`` means the deployment runs without a container runtime; it
        is cached like any other handle.
        """
        if self._runtime is _UNSET:
            with self._lock:
                if self._runtime is _UNSET:
                    self._runtime = self._factories.runtime(self._config)
        return typ.cast("DockerRuntimeClient | None", self._runtime)

    def get_class_portal(self) -> ClassPortal:
        """Return the class portal variant for this deployment."""
        if self._portal is None:
            with self._lock:
                if self._portal is None:
                    self._portal = self._factories.portal(self._config)
        return self._portal

    def get_data_store(self) -> DataStore:
        """Return the persistent data store client."""
        if self._data_store is None:
            with self._lock:
                if self._data_store is None:
                    self._data_store = self._factories.data_store(self._config)
        return self._data_store

    def get_engine(self) -> AutoTestEngine:
        """Return the engine, creating it and its collaborators on first call.

        Collaborators are built in order: data store, runtime client, class
        portal, then the engine bound to all three.
        """
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    data_store = self.get_data_store()
                    runtime = self.get_container_runtime_client()
                    portal = self.get_class_portal()
                    self._engine = self._factories.engine(
                        self._config, data_store, portal, runtime
                    )
                    log_info(
                        logger,
                        "AutoTest engine ready (deployment=%r, runtime=%s)",
                        self._config.name,
                        "absent" if runtime is None else "present",
                    )
        return self._engine

    async def aclose(self) -> None:
        """Release the constructed collaborators and forget them.

        A later ``get_*`` call constructs fresh instances.
        """
        with self._lock:
            portal, self._portal = self._portal, None
            data_store, self._data_store = self._data_store, None
            runtime, self._runtime = self._runtime, _UNSET
            self._engine = None

        if portal is not None:
            await portal.aclose()
        if data_store is not None:
            await data_store.aclose()
        if runtime is not _UNSET and runtime is not None:
            typ.cast("DockerRuntimeClient", runtime).close()


__all__ = [
    "EngineRegistry",
    "RegistryFactories",
    "create_data_store",
    "create_engine",
]
