"""Adapter-specific exceptions."""


class BackendError(Exception):
    """Base exception for backend adapter errors."""


class ConnectionError(BackendError):
    """Raised when the adapter cannot reach its data store."""


class QueryError(BackendError):
    """Raised when a query fails or its rows cannot be parsed."""


class ConfigurationError(BackendError):
    """Raised when adapter configuration is invalid."""


class BackendTimeoutError(BackendError):
    """Raised when a backend call exceeds its time budget."""
