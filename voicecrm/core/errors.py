# File: voicecrm/core/errors.py


class VoiceCrmError(Exception):
    """Base class for every error raised by the voice pipeline."""


class DeviceError(VoiceCrmError):
    """Microphone unavailable or access denied. Recoverable by retrying."""


class CaptureStateError(VoiceCrmError):
    """An illegal recording lifecycle transition was requested."""


class TranscriptionFailure(VoiceCrmError):
    """The transcription backend could not produce a transcript."""


class ExtractionFailure(VoiceCrmError):
    """Structured extraction failed internally."""


class ValidationError(VoiceCrmError):
    """Input failed validation. Carries the offending field names."""

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class NotFound(VoiceCrmError):
    """The requested record does not exist."""


class ServerError(VoiceCrmError):
    """Generic server-side failure. Never retried automatically."""
