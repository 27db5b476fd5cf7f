"""Payloads exchanged with the class portal backend."""

from __future__ import annotations

import msgspec


class PortalConfiguration(msgspec.Struct, kw_only=True, frozen=True):
    """AutoTest settings published by the class portal.

    Attributes
    ----------
    default_deliverable
        Deliverable that pushes are graded against, or ``None`` when the
        course has no open deliverable.

    """

    default_deliverable: str | None = msgspec.field(
        default=None, name="defaultDeliverable"
    )


class PortalEnvelope(msgspec.Struct, kw_only=True):
    """Response wrapper used by the portal: ``success`` or ``failure``."""

    success: PortalConfiguration | None = None
    failure: dict[str, str] | None = None
