"""Select the class portal variant for a deployment."""

from __future__ import annotations

import enum
import typing as typ

from autotest_gateway.config import EDX_DEPLOYMENT_NAME
from autotest_gateway.portal.client import (
    EdXClassPortal,
    HTTPClassPortal,
    portal_config_from,
)

if typ.TYPE_CHECKING:
    from autotest_gateway.config import GatewayConfig
    from autotest_gateway.portal.protocol import ClassPortal


class PortalVariant(enum.StrEnum):
    """Closed set of class portal implementations."""

    STANDARD = "standard"
    EDX = "edx"

    @classmethod
    def for_deployment(cls, name: str) -> PortalVariant:
        """Return the variant serving deployment ``name``."""
        return cls.EDX if name == EDX_DEPLOYMENT_NAME else cls.STANDARD


def create_class_portal(config: GatewayConfig) -> ClassPortal:
    """Create the class portal for ``config.name``.

    Examples
    --------
    >>> from autotest_gateway.config import GatewayConfig
    >>> portal = create_class_portal(GatewayConfig(name="sdmm"))
    >>> type(portal).__name__
    'EdXClassPortal'

    """
    match PortalVariant.for_deployment(config.name):
        case PortalVariant.EDX:
            return EdXClassPortal()
        case PortalVariant.STANDARD:
            return HTTPClassPortal(
                portal_config_from(config.portal_url, config.portal_token)
            )


__all__ = ["PortalVariant", "create_class_portal"]
