"""Core business logic for Voice Collector."""

from .api_client import RecordingsClient
from .capture import CaptureController, CaptureState, CapturedAudio
from .catalogue import DEFAULT_CATALOGUE, Catalogue
from .config import AppConfig
from .filenames import decode_filename, encode_filename, is_valid_filename, validate_filename
from .log import JsonlSyncLog, SyncLog, SyncRecord
from .processing import apply_gain, calculate_db_level, detect_driver_type
from .recording import CaptureDevice, MicrophoneDevice, RecordingEngine
from .sequencer import SessionPosition, SessionSequencer
from .session import RecordingSession
from .storage import RecordingsDirectory
from .sync_queue import RecordingSample, SyncQueue

__all__ = [
    "AppConfig",
    "Catalogue",
    "DEFAULT_CATALOGUE",
    "CaptureController",
    "CaptureDevice",
    "CaptureState",
    "CapturedAudio",
    "MicrophoneDevice",
    "RecordingEngine",
    "RecordingsClient",
    "RecordingsDirectory",
    "RecordingSample",
    "RecordingSession",
    "SessionPosition",
    "SessionSequencer",
    "SyncLog",
    "JsonlSyncLog",
    "SyncRecord",
    "SyncQueue",
    "calculate_db_level",
    "apply_gain",
    "detect_driver_type",
    "encode_filename",
    "decode_filename",
    "is_valid_filename",
    "validate_filename",
]
