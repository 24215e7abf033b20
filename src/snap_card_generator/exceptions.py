"""Error types raised while generating a card.

Every error is terminal for the current generation attempt. Callers show the
text from :meth:`CardGenerationError.describe` and offer a manual retry.
"""

from typing import Optional


class CardGenerationError(Exception):
    """Base class for all pipeline failures."""

    def describe(self) -> str:
        """Human-readable description for progress displays."""
        return str(self)


class TransportError(CardGenerationError):
    """The upstream service answered with a non-success status or was unreachable."""

    def __init__(self, status_code: Optional[int], message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"Request failed: {message or 'Unknown error'}")
        else:
            super().__init__(f"API Error {status_code}: {message or 'Unknown error'}")

    def describe(self) -> str:
        if self.status_code is None:
            return f"OpenAI request failed: {self.message or 'Unknown error'}"
        return f"OpenAI HTTP {self.status_code}: {self.message or 'Unknown error'}"


class DecodeError(CardGenerationError):
    """A response body could not be parsed into the expected shape."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)

    def describe(self) -> str:
        if not self.raw:
            return str(self)
        return f"Failed to decode JSON ({self}). Raw: {self.raw[:200]}..."


class ContentMissingError(CardGenerationError):
    """A successful response lacked the expected payload slot."""


class ConfigurationError(CardGenerationError):
    """Setup problem that blocks every generation attempt until fixed."""


class AssemblerBusyError(CardGenerationError):
    """A generation attempt is already running on this assembler."""
