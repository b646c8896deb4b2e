"""Request-level exceptions raised outside the backend adapters."""


class TrekRouteError(Exception):
    """Base exception for request routing errors."""


class SearchValidationError(TrekRouteError):
    """Raised when the search term is missing or blank (user-correctable)."""


class ResolverUnavailableError(TrekRouteError):
    """Raised when the assignment service cannot produce a variant."""


class TrackingError(TrekRouteError):
    """Raised when a metric event cannot be delivered."""
