"""Class portal implementations."""

from __future__ import annotations

import dataclasses

import httpx
import msgspec

from autotest_gateway.logging import get_logger, log_debug
from autotest_gateway.portal.errors import ClassPortalError
from autotest_gateway.portal.models import PortalConfiguration, PortalEnvelope

logger = get_logger(__name__)

_CONFIGURATION_PATH = "/portal/at"
_EDX_DEFAULT_DELIVERABLE = "d0"


@dataclasses.dataclass(frozen=True, slots=True)
class HTTPClassPortalConfig:
    """Connection settings for the class portal backend."""

    base_url: str
    token: str = ""
    timeout_s: float = 10.0
    user_agent: str = "autotest-gateway/0.1"


class HTTPClassPortal:
    """Class portal backed by the portal's HTTP API.

    ``GET /portal/at`` returns ``{"success": {"defaultDeliverable": ...}}``
    on success and ``{"failure": {"message": ...}}`` otherwise.
    """

    def __init__(
        self,
        config: HTTPClassPortalConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the portal client; an injected ``http_client`` is not closed."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={
                "token": config.token,
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    @property
    def config(self) -> HTTPClassPortalConfig:
        """Return the connection settings."""
        return self._config

    async def aclose(self) -> None:
        """Close the HTTP client if this portal created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_configuration(self) -> PortalConfiguration:
        """Fetch the deployment's AutoTest configuration.

        Raises
        ------
        ClassPortalError
            On transport failure, non-2xx status, undecodable body, or a
            ``failure`` envelope.

        """
        try:
            response = await self._client.get(_CONFIGURATION_PATH)
        except httpx.HTTPError as exc:
            raise ClassPortalError.network_error(str(exc)) from exc

        if response.is_error:
            raise ClassPortalError.http_error(response.status_code)

        try:
            envelope = msgspec.json.decode(response.content, type=PortalEnvelope)
        except msgspec.DecodeError as exc:
            raise ClassPortalError.invalid_response(str(exc)) from exc

        if envelope.success is None:
            failure = envelope.failure or {}
            raise ClassPortalError.rejected(failure.get("message", "no detail"))

        log_debug(
            logger,
            "Class portal default deliverable: %s",
            envelope.success.default_deliverable,
        )
        return envelope.success


class EdXClassPortal:
    """Portal for the edX-hosted course, whose settings never change."""

    def __init__(self, default_deliverable: str = _EDX_DEFAULT_DELIVERABLE) -> None:
        """Serve ``default_deliverable`` for every push."""
        self._configuration = PortalConfiguration(
            default_deliverable=default_deliverable
        )

    async def get_configuration(self) -> PortalConfiguration:
        """Return the fixed edX configuration."""
        return self._configuration

    async def aclose(self) -> None:
        """Nothing to release."""


def portal_config_from(base_url: str, token: str) -> HTTPClassPortalConfig:
    """Return portal settings with any trailing slash removed from the URL."""
    return HTTPClassPortalConfig(base_url=base_url.rstrip("/"), token=token)


__all__ = [
    "EdXClassPortal",
    "HTTPClassPortal",
    "HTTPClassPortalConfig",
    "portal_config_from",
]
