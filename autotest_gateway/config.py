"""Environment-driven configuration for the AutoTest gateway.

Usage
-----
Load the configuration once at startup and pass it to the registry:

>>> import os
>>> os.environ["AUTOTEST_NAME"] = "classytest"
>>> config = GatewayConfig.from_env()
>>> config.is_test_deployment
True

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

TEST_DEPLOYMENT_NAME = "classytest"
"""Deployment name that disables the container runtime client."""

EDX_DEPLOYMENT_NAME = "sdmm"
"""Deployment name served by the edX class portal variant."""

_DEFAULT_PERSIST_DIR = Path("/var/lib/autotest")
_DEFAULT_SSL_CA_PATH = Path("/etc/ssl/certs/ca-certificates.crt")
_DEFAULT_DOCKER_API_VERSION = "1.41"
_DEFAULT_PORTAL_URL = "http://localhost:5000"
_DEFAULT_BOT_NAME = "autobot"


class GatewayConfigError(ValueError):
    """Raised when an ``AUTOTEST_*`` variable holds an unusable value."""

    @classmethod
    def empty(cls, env_var: str) -> GatewayConfigError:
        """Return an error for a variable that is set but blank."""
        return cls(f"{env_var} must not be empty when set")


def _optional_str(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "").strip()
    return raw or None


def _optional_path(env_var: str) -> Path | None:
    raw = _optional_str(env_var)
    return Path(raw) if raw is not None else None


@dc.dataclass(frozen=True, slots=True)
class GatewayConfig:
    """Settings consumed by the registry and HTTP resources.

    Attributes
    ----------
    name
        Deployment (course) name. ``classytest`` disables the container
        runtime; ``sdmm`` selects the edX class portal.
    persist_dir
        Root directory for persisted build artifacts served under
        ``/resource``.
    docker_host
        Remote Docker endpoint such as ``tcp://docker.example:2376``. When
        unset, or when it has no network scheme, the local socket is used.
    docker_api_version
        Docker Engine API version pinned for the client.
    ssl_ca_path, ssl_cert_path, ssl_key_path
        TLS material for a remote Docker endpoint.
    database_url
        SQLAlchemy async URL for the commit-target store.
    portal_url, portal_token
        Class portal backend location and shared secret.
    bot_name
        Handle that students mention in commit comments to request a run.
    broker_url
        Redis URL for the grading queue; ``None`` leaves broker selection to
        the process (stub broker in tests).

    """

    name: str = ""
    persist_dir: Path = _DEFAULT_PERSIST_DIR
    docker_host: str | None = None
    docker_api_version: str = _DEFAULT_DOCKER_API_VERSION
    ssl_ca_path: Path = _DEFAULT_SSL_CA_PATH
    ssl_cert_path: Path | None = None
    ssl_key_path: Path | None = None
    database_url: str | None = None
    portal_url: str = _DEFAULT_PORTAL_URL
    portal_token: str = ""
    bot_name: str = _DEFAULT_BOT_NAME
    broker_url: str | None = None

    @property
    def is_test_deployment(self) -> bool:
        """Return True for the designated no-runtime test deployment."""
        return self.name == TEST_DEPLOYMENT_NAME

    @property
    def resolved_database_url(self) -> str:
        """Return the configured database URL or the persist-dir SQLite file."""
        if self.database_url is not None:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.persist_dir / 'autotest.db'}"

    @classmethod
    def from_env(cls) -> GatewayConfig:
        """Build configuration from ``AUTOTEST_*`` environment variables.

        Reads ``AUTOTEST_NAME``, ``AUTOTEST_PERSIST_DIR``,
        ``AUTOTEST_DOCKER_HOST``, ``AUTOTEST_DOCKER_API_VERSION``,
        ``AUTOTEST_SSL_CA_PATH``, ``AUTOTEST_SSL_CERT_PATH``,
        ``AUTOTEST_SSL_KEY_PATH``, ``AUTOTEST_DATABASE_URL``,
        ``AUTOTEST_PORTAL_URL``, ``AUTOTEST_PORTAL_TOKEN``,
        ``AUTOTEST_BOT_NAME`` and ``AUTOTEST_BROKER_URL``. Unset variables
        keep their defaults.

        Raises
        ------
        GatewayConfigError
            If ``AUTOTEST_BOT_NAME`` or ``AUTOTEST_DOCKER_API_VERSION`` is
            set to a blank value.

        """
        bot_name = os.environ.get("AUTOTEST_BOT_NAME", _DEFAULT_BOT_NAME).strip()
        if not bot_name:
            raise GatewayConfigError.empty("AUTOTEST_BOT_NAME")

        api_version = os.environ.get(
            "AUTOTEST_DOCKER_API_VERSION", _DEFAULT_DOCKER_API_VERSION
        ).strip()
        if not api_version:
            raise GatewayConfigError.empty("AUTOTEST_DOCKER_API_VERSION")

        return cls(
            name=os.environ.get("AUTOTEST_NAME", "").strip(),
            persist_dir=_optional_path("AUTOTEST_PERSIST_DIR") or _DEFAULT_PERSIST_DIR,
            docker_host=_optional_str("AUTOTEST_DOCKER_HOST"),
            docker_api_version=api_version,
            ssl_ca_path=_optional_path("AUTOTEST_SSL_CA_PATH") or _DEFAULT_SSL_CA_PATH,
            ssl_cert_path=_optional_path("AUTOTEST_SSL_CERT_PATH"),
            ssl_key_path=_optional_path("AUTOTEST_SSL_KEY_PATH"),
            database_url=_optional_str("AUTOTEST_DATABASE_URL"),
            portal_url=_optional_str("AUTOTEST_PORTAL_URL") or _DEFAULT_PORTAL_URL,
            portal_token=os.environ.get("AUTOTEST_PORTAL_TOKEN", "").strip(),
            bot_name=bot_name,
            broker_url=_optional_str("AUTOTEST_BROKER_URL"),
        )


__all__ = [
    "EDX_DEPLOYMENT_NAME",
    "TEST_DEPLOYMENT_NAME",
    "GatewayConfig",
    "GatewayConfigError",
]
