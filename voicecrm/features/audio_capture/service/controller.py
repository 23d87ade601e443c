# File: voicecrm/features/audio_capture/service/controller.py
import io
import logging
import wave
from pathlib import Path
from threading import Lock
from typing import Callable, List, Optional

from voicecrm.core.errors import CaptureStateError, DeviceError
from ..domain.interfaces import IAudioInput, IAudioStream
from ..domain.models import AudioClip, CaptureConfig, CaptureState

logger = logging.getLogger(__name__)

# Legal lifecycle moves. Anything else is a CaptureStateError.
_TRANSITIONS = {
    CaptureState.IDLE: {CaptureState.RECORDING, CaptureState.ERROR},
    CaptureState.RECORDING: {CaptureState.STOPPING, CaptureState.ERROR},
    CaptureState.STOPPING: {CaptureState.IDLE},
    CaptureState.ERROR: {CaptureState.IDLE},
}


class AudioCaptureController:
    """
    Owns the microphone lifecycle as an explicit state machine:
    IDLE -> RECORDING -> STOPPING -> IDLE, or IDLE/RECORDING -> ERROR -> IDLE.
    Emits exactly one AudioClip per successful start()/stop() pair.
    """

    def __init__(self,
                 audio_input: Optional[IAudioInput] = None,
                 config: Optional[CaptureConfig] = None,
                 playback_dir: Optional[Path] = None):
        if audio_input is None:
            from ..data.sounddevice_adapter import SoundDeviceInput
            audio_input = SoundDeviceInput()
        self.audio_input = audio_input
        self.config = config or CaptureConfig()
        self.playback_dir = playback_dir

        self._state = CaptureState.IDLE
        self._lock = Lock()
        self._stream: Optional[IAudioStream] = None
        self._chunks: List = []
        self._listeners: List[Callable[[AudioClip], None]] = []
        self.last_error: Optional[Exception] = None
        self.last_clip: Optional[AudioClip] = None

    @property
    def state(self) -> CaptureState:
        return self._state

    def add_listener(self, listener: Callable[[AudioClip], None]) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        if self._state == CaptureState.ERROR:
            self.reset()
        if self._state != CaptureState.IDLE:
            raise CaptureStateError(f"Cannot start recording while {self._state.value}.")

        with self._lock:
            self._chunks = []
        self.last_error = None

        try:
            self._stream = self.audio_input.open(self.config, self._on_chunk, self._on_stream_error)
            self._stream.start()
        except DeviceError as e:
            self.last_error = e
            self._transition(CaptureState.ERROR)
            logger.warning(f"Recording could not start: {e}")
            raise

        self._transition(CaptureState.RECORDING)
        logger.info("Recording started")

    def stop(self) -> Optional[AudioClip]:
        # Checked and moved under the lock; stream errors arrive on the audio thread.
        with self._lock:
            state = self._state
            if state == CaptureState.RECORDING:
                self._transition(CaptureState.STOPPING)

        if state == CaptureState.IDLE:
            return None

        if state == CaptureState.ERROR:
            # No partial clips after a device failure.
            self._close_stream()
            with self._lock:
                self._chunks = []
            self._transition(CaptureState.IDLE)
            return None

        if state != CaptureState.RECORDING:
            raise CaptureStateError(f"Cannot stop while {state.value}.")

        self._close_stream()

        with self._lock:
            chunks, self._chunks = self._chunks, []

        clip = self._build_clip(chunks)
        self._transition(CaptureState.IDLE)

        self.last_clip = clip
        logger.info(f"Recording stopped: {clip.duration_seconds:.1f}s, {clip.size_bytes} bytes")
        for listener in self._listeners:
            listener(clip)
        return clip

    def clear(self) -> None:
        """Discards the last clip and revokes its playback handle."""
        if self.last_clip is not None:
            self.last_clip.release()
            self.last_clip = None

    def reset(self) -> None:
        """Acknowledges an ERROR and returns to IDLE."""
        if self._state == CaptureState.ERROR:
            self._close_stream()
            with self._lock:
                self._chunks = []
            self._transition(CaptureState.IDLE)

    # --- Internals ---

    def _transition(self, target: CaptureState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise CaptureStateError(f"Illegal transition {self._state.value} -> {target.value}")
        logger.debug(f"Capture state: {self._state.value} -> {target.value}")
        self._state = target

    def _on_chunk(self, chunk) -> None:
        with self._lock:
            if self._state in (CaptureState.RECORDING, CaptureState.STOPPING):
                self._chunks.append(chunk)

    def _on_stream_error(self, error: Exception) -> None:
        with self._lock:
            if self._state != CaptureState.RECORDING:
                return
            self.last_error = error
            self._transition(CaptureState.ERROR)
        logger.error(f"Recording failed: {error}")

    def _close_stream(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            # The buffered frames are already in hand; a failing close does not cost the clip.
            logger.warning(f"Error while releasing input stream: {e}")

    def _build_clip(self, chunks: List) -> AudioClip:
        pcm = b"".join(chunk.tobytes() for chunk in chunks)
        sample_width = 2  # int16

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as handle:
            handle.setnchannels(self.config.channels)
            handle.setsampwidth(sample_width)
            handle.setframerate(self.config.sample_rate_hz)
            handle.writeframes(pcm)
        data = buffer.getvalue()

        frame_count = len(pcm) // (sample_width * self.config.channels)
        clip = AudioClip(
            data=data,
            mime_type="audio/wav",
            sample_rate_hz=self.config.sample_rate_hz,
            channels=self.config.channels,
            duration_seconds=frame_count / self.config.sample_rate_hz,
        )

        if self.playback_dir is not None:
            self.playback_dir.mkdir(parents=True, exist_ok=True)
            path = self.playback_dir / clip.filename
            path.write_bytes(data)
            clip.playback_path = path

        return clip
