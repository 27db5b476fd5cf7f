"""Class portal client errors."""

from __future__ import annotations


class ClassPortalError(RuntimeError):
    """Raised when the class portal cannot supply course metadata."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and the portal's HTTP status, if any."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> ClassPortalError:
        """Return an error for a non-2xx portal response."""
        return cls(f"Class portal HTTP {status_code}", status_code=status_code)

    @classmethod
    def network_error(cls, detail: str) -> ClassPortalError:
        """Return an error for transport failures (DNS, connect, timeout)."""
        return cls(f"Class portal unreachable: {detail}")

    @classmethod
    def invalid_response(cls, detail: str) -> ClassPortalError:
        """Return an error for a response body that cannot be decoded."""
        return cls(f"Class portal returned an invalid response: {detail}")

    @classmethod
    def rejected(cls, message: str) -> ClassPortalError:
        """Return an error for a portal ``failure`` envelope."""
        return cls(f"Class portal rejected request: {message}")
