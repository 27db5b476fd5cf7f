"""Construct the container runtime client for a deployment."""

from __future__ import annotations

import typing as typ
from urllib.parse import urlsplit

import docker
import docker.constants
import docker.tls

from autotest_gateway.containers.client import DockerRuntimeClient
from autotest_gateway.containers.errors import RuntimeConfigError
from autotest_gateway.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from autotest_gateway.config import GatewayConfig

logger = get_logger(__name__)

_NETWORK_SCHEMES = frozenset({"http", "https", "tcp"})
_DEFAULT_TLS_PORT = 2376


def is_remote_docker_host(docker_host: str | None) -> bool:
    """Return True when ``docker_host`` names a network endpoint."""
    if not docker_host:
        return False
    return urlsplit(docker_host).scheme.lower() in _NETWORK_SCHEMES


def _remote_client(config: GatewayConfig, docker_host: str) -> docker.DockerClient:
    parts = urlsplit(docker_host)
    if not parts.hostname:
        raise RuntimeConfigError.invalid_host(docker_host)
    if config.ssl_cert_path is None or config.ssl_key_path is None:
        raise RuntimeConfigError.missing_tls_material(docker_host)

    tls_config = docker.tls.TLSConfig(
        client_cert=(str(config.ssl_cert_path), str(config.ssl_key_path)),
        ca_cert=str(config.ssl_ca_path),
        verify=True,
    )
    port = parts.port or _DEFAULT_TLS_PORT
    log_info(logger, "Connecting to remote Docker host %s:%d", parts.hostname, port)
    return docker.DockerClient(
        base_url=f"tcp://{parts.hostname}:{port}",
        tls=tls_config,
        version=config.docker_api_version,
    )


def create_runtime_client(config: GatewayConfig) -> DockerRuntimeClient | None:
    """Create the runtime client selected by ``config``.

    Returns ``None`` for the test deployment, whatever else is configured.
    A host with an ``http``, ``https`` or ``tcp`` scheme gets a TLS client
    using the configured CA, client certificate and key; anything else uses
    the local daemon socket. The API version is pinned, so no request is
    sent to the daemon here.

    Raises
    ------
    RuntimeConfigError
        If a remote host is configured without a hostname or TLS material.

    """
    if config.is_test_deployment:
        log_info(logger, "Test deployment; no container runtime client created")
        return None

    if is_remote_docker_host(config.docker_host):
        client = _remote_client(config, typ.cast("str", config.docker_host))
    else:
        log_info(logger, "Defaulting to the local Docker socket")
        client = docker.DockerClient(
            base_url=docker.constants.DEFAULT_UNIX_SOCKET,
            version=config.docker_api_version,
        )
    return DockerRuntimeClient(client)


__all__ = ["create_runtime_client", "is_remote_docker_host"]
