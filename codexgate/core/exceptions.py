"""
Gateway exceptions.

Custom exception classes for Codexgate. Subclasses of GatewayError are
reported to RPC callers as call-level failures, never as transport errors.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""
    pass


class UnknownProfileError(GatewayError):
    """Requested profile name does not resolve."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        listing = ", ".join(available) if available else "none"
        super().__init__(f"Unknown profile: {name}. Available: {listing}")


class SandboxError(GatewayError):
    """Filesystem sandbox error."""
    pass


class OutOfBoundsPathError(SandboxError):
    """Path resolves outside the sandbox root."""
    pass


class PathNotFoundError(SandboxError):
    """Path does not exist inside the sandbox root."""
    pass


class SandboxIOError(SandboxError):
    """Filesystem operation failed."""
    pass


class ExternalDataUnavailableError(GatewayError):
    """Profile data source could not be queried or returned nothing."""
    pass


class InvalidArgumentsError(GatewayError):
    """Tool arguments are missing or have the wrong type."""
    pass
