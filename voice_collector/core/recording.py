"""Capture devices for Voice Collector.

A capture device is the piece of hardware (or a stand-in for it) that the
:class:`~voice_collector.core.capture.CaptureController` drives through one
recording attempt:

1. :meth:`CaptureDevice.open` acquires the input and starts buffering audio.
2. :meth:`CaptureDevice.finish` stops buffering and returns the encoded bytes.
3. :meth:`CaptureDevice.release` frees every handle.  It must be safe to call
   more than once and after a failed :meth:`~CaptureDevice.open`.

Main public classes
-------------------
:class:`CaptureDevice`
    Abstract interface used by the capture controller.

:class:`MicrophoneDevice`
    PyAudio input stream that collects int16 frames in the PyAudio callback
    thread and encodes them as a WAV file on :meth:`~MicrophoneDevice.finish`.

:class:`RecordingEngine`
    Static helpers for enumerating available input devices.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from loguru import logger

from .errors import DeviceUnavailable
from .processing import apply_gain, calculate_db_level, detect_driver_type, frames_to_wav

RATE = 16000
CHUNK = int(RATE / 10)  # 100ms
CHANNEL = 1


class CaptureDevice(ABC):
    """Interface of a device the capture controller can record from."""

    extension: str = 'webm'
    mime_type: str = 'audio/webm'

    @abstractmethod
    def open(self) -> None:
        """Acquire the input and start buffering audio.

        Raises:
            DeviceUnavailable: If the input cannot be acquired.
        """

    @abstractmethod
    def finish(self) -> bytes:
        """Stop buffering and return the captured audio as a complete file."""

    @abstractmethod
    def release(self) -> None:
        """Free all resources held by the device."""


class MicrophoneDevice(CaptureDevice):
    """Record from a PyAudio input device into an in-memory WAV file."""

    extension = 'wav'
    mime_type = 'audio/wav'

    def __init__(
        self,
        device_id: Optional[int] = None,
        rate: int = RATE,
        chunk: int = CHUNK,
        gain_factor: float = 1.0,
    ) -> None:
        """Initialize the microphone.

        Args:
            device_id: PyAudio input device index, ``None`` for the system default
            rate: Sample rate in Hz; replaced by the device's native rate on open
            chunk: Frames per PyAudio buffer
            gain_factor: Input gain applied to every buffer
        """
        self._device_id = device_id
        self._rate = rate
        self._chunk = chunk
        self._gain_factor = gain_factor
        self._current_db_level = 0.0

        self._audio_interface: Any = None
        self._audio_stream: Any = None
        self._frames: List[bytes] = []
        self._frames_lock = threading.Lock()

    @property
    def rate(self) -> int:
        return self._rate

    def open(self) -> None:
        import pyaudio

        self._frames = []
        try:
            self._audio_interface = pyaudio.PyAudio()
            if self._device_id is None:
                device_info = self._audio_interface.get_default_input_device_info()
                self._device_id = int(device_info['index'])
            else:
                device_info = self._audio_interface.get_device_info_by_index(self._device_id)
            self._rate = int(device_info.get('defaultSampleRate', self._rate))
            self._audio_stream = self._audio_interface.open(
                format=pyaudio.paInt16,
                channels=CHANNEL,
                rate=self._rate,
                input=True,
                input_device_index=self._device_id,
                frames_per_buffer=self._chunk,
                stream_callback=self._fill_buffer,
            )
        except (OSError, IOError, ValueError) as e:
            self.release()
            raise DeviceUnavailable(f"Microphone access denied or failed to start: {e}") from e

        logger.debug(f"Microphone {device_info.get('name', 'Unknown')} opened at {self._rate} Hz")

    def finish(self) -> bytes:
        if self._audio_stream is not None:
            self._audio_stream.stop_stream()
        with self._frames_lock:
            frames = self._frames[:]
            self._frames = []
        return frames_to_wav(frames, self._rate, CHANNEL)

    def release(self) -> None:
        if self._audio_stream is not None:
            try:
                self._audio_stream.close()
            finally:
                self._audio_stream = None
        if self._audio_interface is not None:
            self._audio_interface.terminate()
            self._audio_interface = None
            logger.debug('Microphone has been closed')

    def get_current_db_level(self) -> float:
        return self._current_db_level

    def _fill_buffer(self, in_data: bytes, frame_count: int, time_info: object, status_flags: object) -> tuple:
        """PyAudio callback collecting each buffer after gain is applied."""
        import pyaudio

        processed = apply_gain(in_data, self._gain_factor)
        self._current_db_level = calculate_db_level(processed)
        with self._frames_lock:
            self._frames.append(processed)
        return None, pyaudio.paContinue


class RecordingEngine:
    """Input device discovery."""

    @staticmethod
    def list_devices(driver_filter: Optional[str] = None) -> List[Dict[str, Any]]:
        """List all available input audio devices.

        Args:
            driver_filter: Optional driver type to filter by ('pulse', 'alsa', 'jack', 'usb', 'default')

        Returns:
            One dict per input device with keys id, name, driver, channels, rate, is_default
        """
        import pyaudio

        audio = pyaudio.PyAudio()
        try:
            try:
                default_device_id = int(audio.get_default_input_device_info()['index'])
            except (OSError, IOError):
                default_device_id = -1

            devices = []
            for i in range(audio.get_device_count()):
                info = audio.get_device_info_by_index(i)
                if info.get('maxInputChannels', 0) <= 0:
                    continue
                name = info.get('name', 'Unknown')
                driver = detect_driver_type(name)
                if driver_filter and driver != driver_filter.lower():
                    continue
                devices.append({
                    'id': i,
                    'name': name,
                    'driver': driver,
                    'channels': info.get('maxInputChannels', 0),
                    'rate': int(info.get('defaultSampleRate', 0)),
                    'is_default': i == default_device_id,
                })
            return devices
        finally:
            audio.terminate()
