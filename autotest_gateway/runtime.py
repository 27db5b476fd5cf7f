"""Process entrypoint for the AutoTest gateway.

``create_app`` builds the ASGI app from ``AUTOTEST_*`` environment
variables and is the stable Granian factory target
(``autotest_gateway.runtime:create_app``). ``main`` configures logging and
serves the app.

Server settings read here:

- ``AUTOTEST_HOST``: bind address (default ``0.0.0.0``)
- ``AUTOTEST_PORT``: listen port (default ``11333``)
- ``AUTOTEST_LOG_LEVEL``: log level (default ``INFO``)

Everything else is read by :meth:`GatewayConfig.from_env`.

Run the service with ``python -m autotest_gateway.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from autotest_gateway.config import GatewayConfig
from autotest_gateway.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main", "parse_port"]

logger = get_logger(__name__)

_DEFAULT_PORT = "11333"
_MIN_PORT = 1
_MAX_PORT = 65535


def parse_port(port_str: str) -> int:
    """Return ``port_str`` as a TCP port number.

    Raises
    ------
    SystemExit
        If ``port_str`` is not an integer in 1-65535.

    """
    try:
        port = int(port_str)
    except ValueError as exc:
        log_error(logger, "Invalid AUTOTEST_PORT value: %r", port_str)
        raise SystemExit(1) from exc
    if not _MIN_PORT <= port <= _MAX_PORT:
        log_error(
            logger,
            "AUTOTEST_PORT %d outside valid range %d-%d",
            port,
            _MIN_PORT,
            _MAX_PORT,
        )
        raise SystemExit(1)
    return port


def create_app() -> falcon.asgi.App:
    """Create the gateway app from environment configuration."""
    from autotest_gateway.api.app import AppDependencies
    from autotest_gateway.api.app import create_app as _create_api_app

    return _create_api_app(AppDependencies(config=GatewayConfig.from_env()))


def main() -> None:
    """Start the gateway under Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("AUTOTEST_HOST", "0.0.0.0")  # noqa: S104 - container bind
    port = parse_port(os.environ.get("AUTOTEST_PORT", _DEFAULT_PORT))
    raw_level = os.environ.get("AUTOTEST_LOG_LEVEL", "INFO")

    level, invalid_level = configure_logging(raw_level)
    if invalid_level:
        log_warning(
            logger, "Invalid AUTOTEST_LOG_LEVEL %r, falling back to %s", raw_level, level
        )

    log_info(logger, "Starting AutoTest gateway on %s:%d (log_level=%s)", host, port, level)

    server = Granian(
        "autotest_gateway.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
