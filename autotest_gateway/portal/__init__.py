"""Class portal clients supplying course metadata to the gateway."""

from autotest_gateway.portal.client import EdXClassPortal, HTTPClassPortal
from autotest_gateway.portal.errors import ClassPortalError
from autotest_gateway.portal.factory import PortalVariant, create_class_portal
from autotest_gateway.portal.models import PortalConfiguration
from autotest_gateway.portal.protocol import ClassPortal

__all__ = [
    "ClassPortal",
    "ClassPortalError",
    "EdXClassPortal",
    "HTTPClassPortal",
    "PortalConfiguration",
    "PortalVariant",
    "create_class_portal",
]
