# File: voicecrm/features/audio_capture/data/sounddevice_adapter.py
import logging
from typing import Any, Callable, Dict, List, Optional

from voicecrm.core.errors import DeviceError
from ..domain.interfaces import IAudioInput, IAudioStream
from ..domain.models import CaptureConfig

logger = logging.getLogger(__name__)


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:  # pragma: no cover - environment-dependent
        raise DeviceError("sounddevice (PortAudio) is required for recording.") from exc

    return [d for d in sd.query_devices() if d.get("max_input_channels", 0) > 0]


def select_preferred_device(candidates: List[Dict[str, Any]],
                            prefer_name: Optional[str] = None) -> Dict[str, Any]:
    if not candidates:
        raise DeviceError("No input devices found.")
    if prefer_name:
        preferred = [d for d in candidates if prefer_name.lower() in d.get("name", "").lower()]
        if preferred:
            return preferred[0]
    return candidates[0]


def unsupported_processing(config: CaptureConfig) -> List[str]:
    """Requested input processing that PortAudio cannot apply."""
    requested = []
    if config.echo_cancellation:
        requested.append("echo cancellation")
    if config.noise_suppression:
        requested.append("noise suppression")
    return requested


class SoundDeviceStream(IAudioStream):
    def __init__(self, stream, on_error: Callable[[Exception], None]):
        self._stream = stream
        self._on_error = on_error
        self._stopping = False

    def start(self) -> None:
        try:
            self._stream.start()
        except Exception as exc:
            raise DeviceError(f"Could not start input stream: {exc}") from exc

    def stop(self) -> None:
        self._stopping = True
        # stop() (unlike abort()) lets PortAudio drain the pending buffers first.
        self._stream.stop()

    def close(self) -> None:
        self._stopping = True
        self._stream.close()

    def finished(self) -> None:
        """PortAudio finished_callback. Only an unrequested finish is a device failure."""
        if not self._stopping:
            self._on_error(DeviceError("Input stream ended unexpectedly (device lost)."))


class SoundDeviceInput(IAudioInput):
    """Microphone access through sounddevice/PortAudio (mono int16 frames)."""

    def open(self,
             config: CaptureConfig,
             on_chunk: Callable[[Any], None],
             on_error: Callable[[Exception], None]) -> IAudioStream:
        try:
            import sounddevice as sd
        except (ImportError, OSError) as exc:  # pragma: no cover - environment-dependent
            raise DeviceError("sounddevice (PortAudio) is required for recording.") from exc

        device = select_preferred_device(list_input_devices(), prefer_name=config.device_name)
        logger.info(f"Opening input device '{device.get('name')}' at {config.sample_rate_hz} Hz")
        skipped = unsupported_processing(config)
        if skipped:
            logger.info(f"{', '.join(skipped)} not available through PortAudio; recording unprocessed input")

        def _callback(indata, _frames, _time, status):
            if status:
                if not status.input_overflow:
                    logger.debug(f"Dropping chunk with stream status: {status}")
                    return
                logger.debug("Input overflow; keeping chunk")
            on_chunk(indata.copy())

        holder = {}

        def _finished():
            if "stream" in holder:
                holder["stream"].finished()

        try:
            raw = sd.InputStream(
                samplerate=config.sample_rate_hz,
                channels=config.channels,
                dtype="int16",
                device=device.get("index"),
                callback=_callback,
                finished_callback=_finished,
            )
        except sd.PortAudioError as exc:
            raise DeviceError(f"Could not open input device: {exc}") from exc

        stream = SoundDeviceStream(raw, on_error)
        holder["stream"] = stream
        return stream
