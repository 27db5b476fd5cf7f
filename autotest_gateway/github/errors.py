"""Errors raised while classifying and normalizing GitHub webhooks."""

from __future__ import annotations


class UnsupportedEventError(ValueError):
    """Raised for webhook event kinds the gateway does not handle."""

    def __init__(self, event: str) -> None:
        """Record the rejected event kind."""
        self.event = event
        super().__init__(f"Unhandled GitHub hook event: {event!r}")


class NormalizationError(ValueError):
    """Raised when a webhook body cannot be shaped into a commit target."""

    @classmethod
    def invalid_payload(cls, event: str, detail: str) -> NormalizationError:
        """Return an error for a body that violates the typed payload contract."""
        return cls(f"Invalid {event} payload: {detail}")

    @classmethod
    def invalid_timestamp(cls, value: object) -> NormalizationError:
        """Return an error for an unparseable push timestamp."""
        return cls(f"Unparseable push timestamp: {value!r}")
