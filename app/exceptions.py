"""
Exception hierarchy shared by the history store and the upstream API clients.
"""


class HistoryError(Exception):
    """Base exception for history store errors."""
    pass


class PersistenceError(HistoryError):
    """The storage backend is unreachable, rejected a write, or a read failed."""
    pass


class ValidationError(HistoryError):
    """Malformed input to a store operation (blank subject, negative limit)."""
    pass


class UpstreamError(Exception):
    """A remote API call failed. ``status_code`` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WeatherLookupError(UpstreamError):
    """The weather API could not produce a reading."""
    pass


class PredictionServiceError(UpstreamError):
    """The model server could not produce a prediction."""
    pass
