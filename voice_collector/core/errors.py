"""Error taxonomy for Voice Collector.

Every failure the recorder, queue, client or server can report is a subclass
of :class:`RecorderError`.  Each class carries the HTTP status the server
answers with and whether retrying the same call without changing the input
can succeed.

==========================  ======  =========  ==============================
Class                       Status  Retryable  Raised by
==========================  ======  =========  ==============================
``DeviceUnavailable``       500     yes        capture controller ``start``
``AlreadyRecording``        409     no         capture controller ``start``
``CaptureFailed``           500     yes        capture controller ``stop``
``InvalidFilename``         400     no         filename contract / server
``InvalidSubjectId``        400     no         filename contract / server
``NoFileUploaded``          400     no         server upload
``PayloadTooLarge``         413     no         server upload
``UnsupportedMediaType``    415     no         server upload
``NetworkTimeout``          504     yes        HTTP client
``ServerOffline``           503     yes        HTTP client / health check
``UploadRejected``          502     no         HTTP client
``SessionComplete``         409     no         session sequencer
==========================  ======  =========  ==============================
"""

from typing import Optional


class RecorderError(Exception):
    """Base class for all Voice Collector errors."""

    status_code: int = 500
    retryable: bool = False
    default_message: str = "Something went wrong!"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DeviceUnavailable(RecorderError):
    retryable = True
    default_message = "Microphone access denied or failed to start."


class AlreadyRecording(RecorderError):
    status_code = 409
    default_message = "A recording is already in progress."


class CaptureFailed(RecorderError):
    retryable = True
    default_message = "Failed to process recording."


class InvalidFilename(RecorderError):
    status_code = 400
    default_message = "Invalid filename."


class InvalidSubjectId(RecorderError):
    status_code = 400
    default_message = "Invalid student ID."


class NoFileUploaded(RecorderError):
    status_code = 400
    default_message = "No file uploaded."


class PayloadTooLarge(RecorderError):
    status_code = 413
    default_message = "File too large."


class UnsupportedMediaType(RecorderError):
    status_code = 415
    default_message = "Only audio files are allowed."


class NetworkTimeout(RecorderError):
    status_code = 504
    retryable = True
    default_message = "Request timed out. Please check your internet connection and try again."


class ServerOffline(RecorderError):
    status_code = 503
    retryable = True
    default_message = "Server is not available. Please try again later."


class UploadRejected(RecorderError):
    status_code = 502
    default_message = "The server rejected the request."


class SessionComplete(RecorderError):
    status_code = 409
    default_message = "All runs are complete."


__all__ = [
    "RecorderError",
    "DeviceUnavailable",
    "AlreadyRecording",
    "CaptureFailed",
    "InvalidFilename",
    "InvalidSubjectId",
    "NoFileUploaded",
    "PayloadTooLarge",
    "UnsupportedMediaType",
    "NetworkTimeout",
    "ServerOffline",
    "UploadRejected",
    "SessionComplete",
]
