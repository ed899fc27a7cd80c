class SnooStreamError(Exception):
    """Base class for errors raised by snoostream."""


class ConfigurationError(SnooStreamError, ValueError):
    """Raised synchronously when a stream or client is configured with invalid arguments."""


class FetchError(SnooStreamError):
    """A listing fetch failed (transport, auth or payload). Delivered via the "error" event."""

    def __init__(self, message: str, status: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status = status
        self.url = url
