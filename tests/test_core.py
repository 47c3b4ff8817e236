"""Core functionality tests for Voice Collector."""

import numpy as np
import pytest
import yaml

from voice_collector.core import (
    AppConfig,
    apply_gain,
    calculate_db_level,
    detect_driver_type,
)
from voice_collector.core.config import CONFIG_FILE
from voice_collector.core.errors import PayloadTooLarge, RecorderError, ServerOffline
from voice_collector.core.processing import frames_to_wav


def test_calculate_db_level():
    """Silence reads 0 and a loud signal reads near the top of the scale."""
    silence = np.zeros(1600, dtype=np.int16).tobytes()
    loud = (np.ones(1600, dtype=np.int16) * 30000).tobytes()

    assert calculate_db_level(silence) == 0
    assert 110 < calculate_db_level(loud) <= 120
    assert calculate_db_level(b"") == 0


def test_apply_gain():
    audio_data = (np.ones(1600, dtype=np.int16) * 1000).tobytes()

    assert apply_gain(audio_data, 1.0) == audio_data

    doubled = np.frombuffer(apply_gain(audio_data, 2.0), dtype=np.int16)
    assert doubled[0] == 2000

    clipped = np.frombuffer(apply_gain(audio_data, 100.0), dtype=np.int16)
    assert clipped.max() == 32767


def test_detect_driver_type():
    assert detect_driver_type("PulseAudio") == "pulse"
    assert detect_driver_type("pipewire") == "pulse"
    assert detect_driver_type("HDA Intel: ALC (hw:0,0)") == "alsa"
    assert detect_driver_type("JACK") == "jack"
    assert detect_driver_type("USB Device") == "usb"
    assert detect_driver_type("Unknown") == "default"


def test_frames_to_wav():
    frames = [np.zeros(160, dtype=np.int16).tobytes() for _ in range(10)]
    wav = frames_to_wav(frames, 16000)
    assert wav[:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"


def test_app_config_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = AppConfig(environ={})

    assert config.get("port") == 3001
    assert config.get("max_file_size") == 10 * 1024 * 1024
    assert config.get("time_limit_ms") == 5000
    assert config.get("api_url") == "http://localhost:3001"
    assert config.get_upload_dir().name == "uploads"

    config.set("port", 8080)
    assert config.get("port") == 8080


def test_app_config_loads_yaml(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILE).write_text(
        yaml.safe_dump(
            {
                "server": {"port": 4000, "upload_dir": "recordings/"},
                "client": {"api_url": "http://recorder.local:4000", "time_limit_ms": 3000},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    config = AppConfig(environ={})

    assert config.get("port") == 4000
    assert config.get("upload_dir") == "recordings/"
    assert config.get("api_url") == "http://recorder.local:4000"
    assert config.get("time_limit_ms") == 3000


def test_app_config_rejects_non_mapping_yaml(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILE).write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ValueError):
        AppConfig(environ={})


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    (tmp_path / CONFIG_FILE).write_text(yaml.safe_dump({"server": {"port": 4000}}), encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    config = AppConfig(environ={"PORT": "5000", "MAX_FILE_SIZE": "2048", "UPLOAD_DIR": "/srv/rec"})

    assert config.get("port") == 5000
    assert config.get("max_file_size") == 2048
    assert config.get("upload_dir") == "/srv/rec"


def test_environment_rejects_bad_integers(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ValueError):
        AppConfig(environ={"PORT": "eighty"})


def test_queue_dir_is_created(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = AppConfig(environ={"QUEUE_DIR": str(tmp_path / "spool")})
    assert config.get_queue_dir().is_dir()


def test_error_taxonomy():
    assert PayloadTooLarge().status_code == 413
    assert ServerOffline().retryable
    assert not PayloadTooLarge().retryable
    assert isinstance(ServerOffline(), RecorderError)
    assert str(PayloadTooLarge("big")) == "big"
