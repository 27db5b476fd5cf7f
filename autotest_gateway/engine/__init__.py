"""Engine collaborators and their process-wide registry.

Usage
-----
Build the registry once and share it::

    from autotest_gateway.config import GatewayConfig
    from autotest_gateway.engine import EngineRegistry

    registry = EngineRegistry(GatewayConfig.from_env())
    engine = registry.get_engine()

"""

from autotest_gateway.engine.datastore import SQLAlchemyDataStore
from autotest_gateway.engine.engine import QueuedAutoTest
from autotest_gateway.engine.protocol import AutoTestEngine, DataStore
from autotest_gateway.engine.registry import EngineRegistry, RegistryFactories

__all__ = [
    "AutoTestEngine",
    "DataStore",
    "EngineRegistry",
    "QueuedAutoTest",
    "RegistryFactories",
    "SQLAlchemyDataStore",
]
