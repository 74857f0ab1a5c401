"""
Error taxonomy for the read path.

Input errors (`WindowOrderError`) are always raised to the caller. Store and
decode errors are raised by the components that hit them; whether the engine
propagates them or records them on the result set is decided by
`EngineConfig.fail_fast`.
"""


class ChronodiumError(Exception):
    """Base class for all errors raised by chronodium."""


class WindowOrderError(ChronodiumError, ValueError):
    """The query window starts after it ends."""


class StoreError(ChronodiumError):
    """A backend operation failed."""


class KeyNotFoundError(StoreError):
    """The requested key does not exist in the store."""


class CorruptBlobError(ChronodiumError, ValueError):
    """A point blob is not a whole number of records."""
