"""Container runtime access: image listing and streamed image builds."""

from autotest_gateway.containers.client import (
    BuildRecord,
    BuildRequest,
    BuildStream,
    DockerRuntimeClient,
    ImageDescriptor,
)
from autotest_gateway.containers.errors import (
    ContainerRuntimeError,
    RuntimeConfigError,
    RuntimeUnavailableError,
)
from autotest_gateway.containers.factory import create_runtime_client

__all__ = [
    "BuildRecord",
    "BuildRequest",
    "BuildStream",
    "ContainerRuntimeError",
    "DockerRuntimeClient",
    "ImageDescriptor",
    "RuntimeConfigError",
    "RuntimeUnavailableError",
    "create_runtime_client",
]
