# File: voicecrm/features/transcription/service/api.py
import logging

from voicecrm.core.config.settings import settings
from .gateway import TranscriptionGateway

logger = logging.getLogger(__name__)


def build_gateway() -> TranscriptionGateway:
    """
    Wires a gateway from settings. Heavy model adapters are only imported
    when their backend is selected.
    """
    backend = settings.TRANSCRIPTION_BACKEND.lower()
    transcriber = None

    if backend == "remote":
        from ..data.http_adapter import HttpTranscriber
        transcriber = HttpTranscriber()
    elif backend == "whisper":
        from ..data.whisper_adapter import WhisperAdapter
        transcriber = WhisperAdapter()
    elif backend != "none":
        logger.warning(f"Unknown transcription backend '{backend}'; only fallback transcripts will be produced")

    enhancer = None
    if settings.ENHANCER_ENABLED:
        from voicecrm.features.intelligence.data.qwen_adapter import QwenEnhancementAdapter
        enhancer = QwenEnhancementAdapter()

    return TranscriptionGateway(transcriber=transcriber, enhancer=enhancer)
