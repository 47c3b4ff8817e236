"""Capture controller tests."""

import time

import pytest

from voice_collector.core.capture import CaptureController, CaptureState
from voice_collector.core.errors import AlreadyRecording, CaptureFailed, DeviceUnavailable
from conftest import FakeDevice


def test_manual_stop_returns_audio_and_releases_device(fake_device):
    controller = CaptureController(fake_device, time_limit_ms=10_000)
    controller.start()
    assert controller.state is CaptureState.RECORDING
    assert fake_device.is_open

    audio = controller.stop()

    assert audio.audio_bytes == b"RIFFfake"
    assert audio.extension == "webm"
    assert audio.mime_type == "audio/webm"
    assert controller.state is CaptureState.IDLE
    assert fake_device.released == 1
    assert controller.wait(0) is audio


def test_time_limit_stops_capture_without_polling(fake_device):
    controller = CaptureController(fake_device, time_limit_ms=50)
    controller.start()

    audio = controller.wait(timeout=5)

    assert audio.audio_bytes == b"RIFFfake"
    assert controller.state is CaptureState.IDLE
    assert fake_device.released == 1


def test_manual_stop_cancels_timer(fake_device):
    controller = CaptureController(fake_device, time_limit_ms=100)
    controller.start()
    controller.stop()
    time.sleep(0.2)
    assert fake_device.released == 1


def test_stop_outside_recording_is_noop(fake_device):
    controller = CaptureController(fake_device)
    assert controller.stop() is None
    assert fake_device.released == 0


def test_second_start_is_rejected(fake_device):
    controller = CaptureController(fake_device, time_limit_ms=10_000)
    controller.start()
    with pytest.raises(AlreadyRecording):
        controller.start()
    controller.stop()
    assert fake_device.opened == 1


def test_unavailable_device_returns_to_idle_and_releases():
    device = FakeDevice(fail_open=True)
    controller = CaptureController(device)

    with pytest.raises(DeviceUnavailable) as excinfo:
        controller.start()

    assert excinfo.value.retryable
    assert controller.state is CaptureState.IDLE
    assert device.released == 1
    with pytest.raises(DeviceUnavailable):
        controller.wait(0)


def test_start_can_be_retried_after_device_failure():
    device = FakeDevice(fail_open=True)
    controller = CaptureController(device, time_limit_ms=10_000)
    with pytest.raises(DeviceUnavailable):
        controller.start()

    device.fail_open = False
    controller.start()
    assert controller.stop().audio_bytes == b"RIFFfake"


def test_finish_failure_still_releases_device():
    device = FakeDevice(fail_finish=True)
    controller = CaptureController(device, time_limit_ms=10_000)
    controller.start()

    with pytest.raises(CaptureFailed):
        controller.stop()

    assert device.released == 1
    assert controller.state is CaptureState.IDLE
    assert isinstance(controller.last_error, CaptureFailed)


def test_auto_stop_failure_is_reported_to_waiter():
    device = FakeDevice(fail_finish=True)
    controller = CaptureController(device, time_limit_ms=20)
    controller.start()

    with pytest.raises(CaptureFailed):
        controller.wait(timeout=5)
    assert device.released == 1


def test_wait_without_start_fails(fake_device):
    controller = CaptureController(fake_device)
    with pytest.raises(CaptureFailed):
        controller.wait(0)


def test_capture_result_is_handed_out_once(fake_device):
    controller = CaptureController(fake_device, time_limit_ms=10_000)
    controller.start()
    controller.stop()

    assert controller.wait(0).audio_bytes == b"RIFFfake"
    with pytest.raises(CaptureFailed):
        controller.wait(0)
