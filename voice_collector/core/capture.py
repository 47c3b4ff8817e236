"""Capture controller: one timed recording attempt against a capture device.

State machine::

    IDLE -> ACQUIRING -> RECORDING -> STOPPING -> IDLE
               |                          |
               +--> IDLE (error)          +--> IDLE (error)

:meth:`CaptureController.start` acquires the device and arms a cancellable
timer; when the time limit elapses the timer thread stops the capture on its
own.  :meth:`CaptureController.stop` ends the capture early.  Whichever path
ends the capture, the device is released before the controller returns to
``IDLE``.  Callers block on :meth:`CaptureController.wait` for the outcome.
"""

import datetime
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from .errors import AlreadyRecording, CaptureFailed, DeviceUnavailable, RecorderError
from .recording import CaptureDevice

TIME_LIMIT_MS = 5000


class CaptureState(str, Enum):
    IDLE = 'idle'
    ACQUIRING = 'acquiring'
    RECORDING = 'recording'
    STOPPING = 'stopping'


@dataclass
class CapturedAudio:
    """Audio produced by one successful capture."""

    audio_bytes: bytes
    extension: str
    mime_type: str
    captured_at: datetime.datetime
    duration_sec: float


class CaptureController:
    """Drive exactly one capture at a time on a single device."""

    def __init__(self, device: CaptureDevice, time_limit_ms: int = TIME_LIMIT_MS) -> None:
        self._device = device
        self._time_limit_ms = time_limit_ms
        self._state = CaptureState.IDLE
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._done = threading.Event()
        self._done.set()
        self._started_at: Optional[float] = None
        self._result: Optional[CapturedAudio] = None
        self._error: Optional[RecorderError] = None
        self._unclaimed = False

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def device(self) -> CaptureDevice:
        return self._device

    @property
    def last_error(self) -> Optional[RecorderError]:
        return self._error

    def start(self) -> None:
        """Acquire the device and start a capture bounded by the time limit.

        Raises:
            AlreadyRecording: If a capture is already in progress.
            DeviceUnavailable: If the device cannot be acquired.
        """
        with self._lock:
            if self._state is not CaptureState.IDLE:
                raise AlreadyRecording()
            self._state = CaptureState.ACQUIRING
            self._done.clear()
            self._result = None
            self._error = None
            self._unclaimed = False

        try:
            self._device.open()
        except Exception as e:
            self._device.release()
            error = e if isinstance(e, DeviceUnavailable) else DeviceUnavailable(str(e) or None)
            self._finish(error=error)
            logger.warning(f'Capture device unavailable: {error}')
            raise error from e

        with self._lock:
            self._state = CaptureState.RECORDING
            self._started_at = time.monotonic()
            self._timer = threading.Timer(self._time_limit_ms / 1000, self._on_time_limit)
            self._timer.daemon = True
            self._timer.start()
        logger.debug(f'Capture started, auto-stop in {self._time_limit_ms} ms')

    def stop(self) -> Optional[CapturedAudio]:
        """Stop the running capture and return its audio.

        Outside ``RECORDING`` this is a no-op returning ``None``.

        Raises:
            CaptureFailed: If the device fails to produce the audio.
        """
        with self._lock:
            if self._state is not CaptureState.RECORDING:
                return None
            self._state = CaptureState.STOPPING
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        try:
            try:
                audio_bytes = self._device.finish()
            finally:
                self._device.release()
        except Exception as e:
            error = CaptureFailed(f'Failed to process recording: {e}')
            self._finish(error=error)
            raise error from e

        duration = time.monotonic() - (self._started_at or time.monotonic())
        result = CapturedAudio(
            audio_bytes=audio_bytes,
            extension=self._device.extension,
            mime_type=self._device.mime_type,
            captured_at=datetime.datetime.now(),
            duration_sec=duration,
        )
        self._finish(result=result)
        logger.debug(f'Capture finished: {len(audio_bytes)} bytes in {duration:.2f}s')
        return result

    def wait(self, timeout: Optional[float] = None) -> CapturedAudio:
        """Block until the current capture ends and return its audio.

        Each capture outcome is handed out once; a second call without a new
        :meth:`start` raises :class:`CaptureFailed`.

        Raises:
            TimeoutError: If the capture is still running after *timeout* seconds.
            RecorderError: The error that ended the capture.
        """
        if not self._done.wait(timeout):
            raise TimeoutError('Capture did not finish in time')
        with self._lock:
            if not self._unclaimed:
                raise CaptureFailed('No capture has been started')
            self._unclaimed = False
            result, self._result = self._result, None
            error = self._error
        if error is not None:
            raise error
        return result

    def _on_time_limit(self) -> None:
        logger.debug('Capture time limit reached')
        try:
            self.stop()
        except CaptureFailed as e:
            logger.warning(f'Auto-stop failed: {e}')

    def _finish(
        self,
        result: Optional[CapturedAudio] = None,
        error: Optional[RecorderError] = None,
    ) -> None:
        with self._lock:
            self._result = result
            self._error = error
            self._unclaimed = True
            self._state = CaptureState.IDLE
        self._done.set()
