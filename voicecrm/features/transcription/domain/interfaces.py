from abc import ABC, abstractmethod
from voicecrm.features.audio_capture.domain.models import AudioClip
from .models import ExtractedHints, TranscriptResult


class ITranscriber(ABC):
    """
    Contract for any ASR (Automatic Speech Recognition) backend.
    Allows us to swap the remote API for a local Whisper model.
    """

    @abstractmethod
    async def transcribe(self, clip: AudioClip) -> TranscriptResult:
        """
        Transcribes the clip.

        Returns:
            TranscriptResult with status SUCCESS.

        Raises:
            TranscriptionFailure: network error, non-2xx, timeout or empty transcript.
        """
        pass


class ITranscriptEnhancer(ABC):
    """
    Optional post-processing step: cleans a raw transcript and extracts hints
    (customer, deal, action items, summary) with a generative model.
    """

    @abstractmethod
    def enhance(self, text: str) -> ExtractedHints:
        """
        Raises:
            ExtractionFailure: the model output could not be parsed.
        """
        pass
