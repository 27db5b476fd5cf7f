"""ClassPortal protocol for course and deliverable metadata lookups."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from autotest_gateway.portal.models import PortalConfiguration


@typ.runtime_checkable
class ClassPortal(typ.Protocol):
    """Source of the course metadata needed to interpret push events.

    The portal owns course and deliverable storage; the gateway only asks
    for the configuration that applies to the current deployment.
    """

    async def get_configuration(self) -> PortalConfiguration:
        """Return the deployment's current AutoTest configuration."""
        ...

    async def aclose(self) -> None:
        """Release any resources held by the portal client."""
        ...
