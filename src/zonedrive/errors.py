"""
Errors raised by the simulation core.

Per-frame numeric edge cases (zero-length vectors, zero deltas) are guarded
where they occur and never surface here.
"""


class ZoneDriveError(Exception):
    """Base class for all ZoneDrive errors."""


class NotInitialized(ZoneDriveError, RuntimeError):
    """Physics operation attempted before the engine finished initializing."""


class InvalidHandle(ZoneDriveError, LookupError):
    """Body handle that does not belong to, or is not usable in, this world."""
