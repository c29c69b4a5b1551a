"""Error taxonomy shared by the round pipeline and the HTTP layer."""

from typing import Optional


class PromptMatchError(Exception):
    """Base class for all errors raised by the game services."""


class ValidationError(PromptMatchError):
    """A prompt failed the type or length checks before any network call."""


class UpstreamError(PromptMatchError):
    """The image generation provider was unreachable or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(PromptMatchError):
    """Image bytes could not be turned into a pixel buffer."""


class UnexpectedError(PromptMatchError):
    """Anything uncategorized, surfaced to the participant with a generic message."""
