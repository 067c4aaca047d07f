"""Error taxonomy shared by the session, the relays and the HTTP layer."""

from typing import Optional


class PracticeError(Exception):
    """Base class for every recoverable practice-flow error."""


class DeviceUnavailable(PracticeError):
    """Microphone permission was denied or no input device exists."""


class ValidationError(PracticeError):
    """Missing or empty user input, e.g. a blank answer."""


class InvalidTransition(PracticeError):
    """An operation was called from a step that does not allow it."""


class MalformedFeedback(PracticeError):
    """The completion could not be parsed into a feedback record."""


class TranscriptionFailed(PracticeError):
    """Speech-to-text returned a non-success status or an empty result."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class UpstreamUnavailable(PracticeError):
    """Network or service error talking to an upstream API."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
