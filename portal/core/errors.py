from __future__ import annotations


class PortalError(RuntimeError):
    """Base class for errors raised by the portal backend."""


class InvalidAccessModeError(PortalError, ValueError):
    """Raised when an access mode or restriction degree is not recognised."""


class PlatformError(PortalError):
    """Raised when the downstream platform API rejects a request."""


class LockOwnerFormatError(PortalError, ValueError):
    """Raised when a job's ``locked_by`` value cannot be parsed."""
