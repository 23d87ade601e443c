from abc import ABC, abstractmethod
from typing import Any, Callable
from .models import CaptureConfig


class IAudioStream(ABC):
    """An opened input stream. Delivers chunks to the callback given at open time."""

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stops delivery after flushing the frames already buffered by the driver."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class IAudioInput(ABC):
    """
    Contract for a microphone backend.
    Allows the controller to run against sounddevice in production and a fake in tests.
    """

    @abstractmethod
    def open(self,
             config: CaptureConfig,
             on_chunk: Callable[[Any], None],
             on_error: Callable[[Exception], None]) -> IAudioStream:
        """
        Acquires the input device.

        Raises:
            DeviceError: access denied or no input device available.
        """
        pass
