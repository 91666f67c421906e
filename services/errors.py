class BurnoutError(Exception):
    """Base class for burnout scoring errors."""


class AuthenticationError(BurnoutError):
    """Raised when a computation is requested without a user identity."""


class SourceUnavailableError(BurnoutError):
    """Raised by a data source that cannot supply data for a user.

    The engine absorbs this and marks the sub-score as absent.
    """

    def __init__(self, source, reason):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class UnsupportedDatabaseError(BurnoutError):
    """Raised when the configured database cannot perform an atomic upsert."""
