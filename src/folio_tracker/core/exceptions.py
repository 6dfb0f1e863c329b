"""Custom exceptions for the folio tracker."""


class FolioTrackerError(Exception):
    """Base exception."""
    pass


class RecordNotFoundError(FolioTrackerError):
    pass


class HoldingNotFoundError(RecordNotFoundError):
    pass


class GrantNotFoundError(RecordNotFoundError):
    pass


class EsppNotFoundError(RecordNotFoundError):
    pass


class ValidationError(FolioTrackerError):
    """A record failed validation at create/update time."""
    pass


class RateFetchError(FolioTrackerError):
    pass


class UnknownCurrencyError(FolioTrackerError):
    """Currency code absent from both the live and the fallback rate table."""
    pass
