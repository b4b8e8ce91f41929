# bloom_host/core/exceptions.py
from typing import Optional


class RelayError(Exception):
    """Base exception for failures the relay reports to the caller."""

    status_code = 500
    default_message = "Unknown error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnknownActionError(RelayError):
    """Raised when the request names an action that has no prompt template."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown action: {action}")


class ConfigurationError(RelayError):
    """Raised when the relay is missing configuration it needs to call upstream."""
    pass


class UpstreamRateLimitedError(RelayError):
    """Raised when the LLM gateway answers 429."""

    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."


class UpstreamQuotaExceededError(RelayError):
    """Raised when the LLM gateway answers 402 (credits or usage exhausted)."""

    status_code = 402
    default_message = "Usage limit reached. Please try again later."


class UpstreamError(RelayError):
    """Raised for any other gateway failure (non-2xx, connection error)."""

    default_message = "AI gateway error"


class ParseError(RelayError):
    """Raised when model output for a structured action can't be coerced into JSON."""

    default_message = "Failed to parse AI response. Please try again."
