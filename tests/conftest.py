"""Shared test fixtures for Voice Collector tests."""

import pytest
from pathlib import Path

from voice_collector.core.errors import DeviceUnavailable
from voice_collector.core.recording import CaptureDevice
from voice_collector.core.storage import RecordingsDirectory


class FakeDevice(CaptureDevice):
    """Capture device that records nothing but tracks how it was driven."""

    extension = "webm"
    mime_type = "audio/webm"

    def __init__(self, payload: bytes = b"RIFFfake", fail_open: bool = False, fail_finish: bool = False):
        self.payload = payload
        self.fail_open = fail_open
        self.fail_finish = fail_finish
        self.opened = 0
        self.released = 0
        self.is_open = False

    def open(self) -> None:
        self.opened += 1
        if self.fail_open:
            raise DeviceUnavailable("Permission denied")
        self.is_open = True

    def finish(self) -> bytes:
        if self.fail_finish:
            raise IOError("stream broke")
        return self.payload

    def release(self) -> None:
        self.released += 1
        self.is_open = False


class FakeClient:
    """Stand-in for RecordingsClient that records uploads or fails on demand."""

    def __init__(self, fail_with=None, online: bool = True):
        self.fail_with = fail_with
        self.online = online
        self.uploads = []

    def upload_recording(self, audio_bytes, filename, mime_type="audio/webm"):
        if self.fail_with is not None:
            raise self.fail_with
        self.uploads.append((filename, audio_bytes, mime_type))
        return {"filename": filename, "size": len(audio_bytes)}

    def check_server(self):
        return self.online


@pytest.fixture
def fake_device():
    return FakeDevice()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def queue_dir(tmp_path):
    """Provide a temporary spool directory for sync queues."""
    path = tmp_path / "queue"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def recordings_dir(upload_dir):
    return RecordingsDirectory(str(upload_dir), max_file_size=1024)
