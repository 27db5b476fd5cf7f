"""Container runtime errors."""

from __future__ import annotations

from http import HTTPStatus

_DEFAULT_STATUS = HTTPStatus.INTERNAL_SERVER_ERROR


class ContainerRuntimeError(RuntimeError):
    """Raised when a Docker Engine call fails.

    Attributes
    ----------
    status_code
        Status reported by the Docker daemon, or 500 when the failure
        happened before the daemon answered (connection refused, TLS).

    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with the runtime's message and status code."""
        self.message = message
        self.status_code = int(status_code or _DEFAULT_STATUS)
        super().__init__(message)


class RuntimeUnavailableError(ContainerRuntimeError):
    """Raised when the deployment runs without a container runtime client."""

    def __init__(self) -> None:
        """Use a fixed message; the client is absent by configuration."""
        super().__init__("Container runtime is not available in this deployment")


class RuntimeConfigError(ValueError):
    """Raised when the Docker endpoint configuration cannot be used."""

    @classmethod
    def missing_tls_material(cls, docker_host: str) -> RuntimeConfigError:
        """Return an error for a remote endpoint without client cert/key."""
        return cls(
            f"AUTOTEST_SSL_CERT_PATH and AUTOTEST_SSL_KEY_PATH are required "
            f"for remote Docker host {docker_host}"
        )

    @classmethod
    def invalid_host(cls, docker_host: str) -> RuntimeConfigError:
        """Return an error for a remote endpoint without a hostname."""
        return cls(f"AUTOTEST_DOCKER_HOST has no hostname: {docker_host!r}")
