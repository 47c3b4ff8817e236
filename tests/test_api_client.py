"""Recordings client tests against a mocked HTTP transport."""

import httpx
import pytest

from voice_collector.core.api_client import ApiConfig, RecordingsClient
from voice_collector.core.errors import (
    InvalidFilename,
    InvalidSubjectId,
    NetworkTimeout,
    PayloadTooLarge,
    ServerOffline,
    UnsupportedMediaType,
    UploadRejected,
)


def _client(handler):
    return RecordingsClient(ApiConfig(base_url="http://recorder.test"), transport=httpx.MockTransport(handler))


def test_upload_sends_multipart_audio_field():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"status": "success", "data": {"filename": "42_1A.webm", "size": 5}})

    with _client(handler) as client:
        data = client.upload_recording(b"audio", "42_1A.webm", "audio/webm")

    assert data == {"filename": "42_1A.webm", "size": 5}
    assert seen["path"] == "/api/upload"
    assert b'name="audio"; filename="42_1A.webm"' in seen["body"]
    assert b"Content-Type: audio/webm" in seen["body"]


def test_upload_refuses_invalid_name_before_sending():
    def handler(request):
        raise AssertionError("request should not be sent")

    with pytest.raises(InvalidFilename):
        _client(handler).upload_recording(b"audio", "../42_1A.webm")


@pytest.mark.parametrize(
    "status,error",
    [(400, InvalidFilename), (413, PayloadTooLarge), (415, UnsupportedMediaType), (500, UploadRejected)],
)
def test_upload_error_statuses_map_to_taxonomy(status, error):
    def handler(request):
        return httpx.Response(status, json={"status": "error", "message": "nope"})

    with pytest.raises(error) as excinfo:
        _client(handler).upload_recording(b"audio", "42_1A.webm")
    assert excinfo.value.message == "nope"


def test_timeout_maps_to_network_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkTimeout) as excinfo:
        _client(handler).upload_recording(b"audio", "42_1A.webm")
    assert excinfo.value.retryable


def test_connection_failure_maps_to_server_offline():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ServerOffline):
        _client(handler).list_recordings("42")


def test_list_recordings():
    def handler(request):
        assert request.url.path == "/api/recordings/42"
        return httpx.Response(200, json={"status": "success", "data": {"recordings": ["42_1A.webm"]}})

    assert _client(handler).list_recordings("42") == ["42_1A.webm"]


def test_list_rejects_bad_subject_locally():
    with pytest.raises(InvalidSubjectId):
        _client(lambda r: httpx.Response(200)).list_recordings("4/2")


def test_delete_recording():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        return httpx.Response(200, json={"status": "success", "message": "File deleted."})

    _client(handler).delete_recording("42_1Done.webm")
    assert calls == [("DELETE", "/api/recordings/42_1Done.webm")]


def test_check_server():
    assert _client(lambda r: httpx.Response(200, json={"status": "Server is running"})).check_server()
    assert not _client(lambda r: httpx.Response(200, json={"status": "maintenance"})).check_server()
    assert not _client(lambda r: httpx.Response(503, json={})).check_server()

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    assert not _client(refuse).check_server()


def test_api_config_from_dict():
    config = ApiConfig.from_dict({"api_url": "http://example.test:3001/", "api_timeout": 10})
    assert config.base_url == "http://example.test:3001"
    assert config.timeout == 10.0
    with pytest.raises(ValueError):
        ApiConfig.from_dict({"api_url": "ftp://example.test"})


def test_unreadable_success_body_is_upload_rejected():
    def handler(request):
        return httpx.Response(200, text="<html>proxy page</html>")

    with pytest.raises(UploadRejected):
        _client(handler).upload_recording(b"audio", "42_1A.webm")
    with pytest.raises(UploadRejected):
        _client(handler).list_recordings("42")


def test_error_with_non_object_body_uses_status_message():
    def handler(request):
        return httpx.Response(500, json=["boom"])

    with pytest.raises(UploadRejected) as excinfo:
        _client(handler).upload_recording(b"audio", "42_1A.webm")
    assert "500" in excinfo.value.message
