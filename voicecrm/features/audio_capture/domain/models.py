# File: voicecrm/features/audio_capture/domain/models.py
import io
import logging
import uuid
import wave
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, unique
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/aac": "aac",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
    "audio/aiff": "aiff",
    "audio/x-aiff": "aiff",
}


@unique
class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass(frozen=True)
class CaptureConfig:
    """
    Input stream settings requested from the platform.
    PortAudio has no echo cancellation or noise suppression; when requested the
    sounddevice adapter logs that it records unprocessed input.
    """
    sample_rate_hz: int = 44100
    channels: int = 1
    device_name: Optional[str] = None
    echo_cancellation: bool = True
    noise_suppression: bool = True

    def __post_init__(self):
        if self.sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0.")
        if self.channels <= 0:
            raise ValueError("channels must be > 0.")


@dataclass
class AudioClip:
    """
    A finished recording. Owned by the capture controller until handed to the transcription gateway.
    """
    data: bytes
    mime_type: str
    sample_rate_hz: Optional[int]
    channels: int
    duration_seconds: Optional[float]
    playback_path: Optional[Path] = None
    clip_id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    released: bool = False

    @classmethod
    def from_upload(cls, data: bytes, mime_type: str) -> "AudioClip":
        """Wraps uploaded bytes. Only WAV headers are read; other formats leave rate and duration unknown."""
        sample_rate, channels, duration = None, 1, None
        if MIME_EXTENSIONS.get(mime_type.split(";")[0].strip()) == "wav":
            try:
                with wave.open(io.BytesIO(data), "rb") as handle:
                    sample_rate = handle.getframerate()
                    channels = handle.getnchannels()
                    duration = handle.getnframes() / sample_rate if sample_rate else None
            except (wave.Error, EOFError) as e:
                logger.debug(f"Upload is not a readable WAV file: {e}")
        return cls(data=data, mime_type=mime_type, sample_rate_hz=sample_rate, channels=channels,
                   duration_seconds=duration)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> str:
        extension = MIME_EXTENSIONS.get(self.mime_type.split(";")[0].strip(), "bin")
        return f"{self.clip_id}.{extension}"

    def release(self) -> None:
        """Revokes the local playback handle. Safe to call twice."""
        if self.released:
            return
        if self.playback_path is not None and self.playback_path.exists():
            self.playback_path.unlink()
            logger.debug(f"Released playback file {self.playback_path}")
        self.released = True
