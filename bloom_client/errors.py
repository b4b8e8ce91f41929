from typing import Optional


class RequestError(Exception):
    """The relay answered a dispatched action with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StreamError(RequestError):
    """The mentor chat stream could not be started or broke off."""
    pass
