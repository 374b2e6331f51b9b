"""Error taxonomy shared by the core rules and the storage shell."""


class HydroTrackError(Exception):
    """Base class for all tracker errors."""


class ValidationError(HydroTrackError):
    """An intake was rejected before anything was written.

    Attributes:
        reason: Human-readable rejection reason
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PersistenceError(HydroTrackError):
    """A read, write or transaction against the store failed."""


class NotFoundError(HydroTrackError):
    """A referenced user or log is absent and no default can be synthesized."""
