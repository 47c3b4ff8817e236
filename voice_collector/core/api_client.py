"""HTTP client for the Voice Collector recordings server."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type
from urllib.parse import quote

import httpx
from loguru import logger

from .errors import (
    InvalidFilename,
    InvalidSubjectId,
    NetworkTimeout,
    PayloadTooLarge,
    RecorderError,
    ServerOffline,
    UnsupportedMediaType,
    UploadRejected,
)
from .filenames import validate_filename, validate_subject_id

API_URL = 'http://localhost:3001'
API_TIMEOUT = 30.0
HEALTH_TIMEOUT = 5.0
HEALTHY_STATUS = 'Server is running'

_STATUS_ERRORS: Dict[int, Type[RecorderError]] = {
    413: PayloadTooLarge,
    415: UnsupportedMediaType,
}


@dataclass
class ApiConfig:
    """Connection settings for the recordings server."""

    base_url: str = API_URL
    timeout: float = API_TIMEOUT
    health_timeout: float = HEALTH_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApiConfig":
        """Build config from an :class:`~voice_collector.core.config.AppConfig` style mapping."""
        base_url = str(data.get('api_url') or API_URL).rstrip('/')
        if not base_url.startswith(('http://', 'https://')):
            raise ValueError(f"api_url must be an http(s) URL, got {base_url!r}")
        return cls(
            base_url=base_url,
            timeout=float(data.get('api_timeout', API_TIMEOUT)),
            health_timeout=float(data.get('health_timeout', HEALTH_TIMEOUT)),
        )


class RecordingsClient:
    """Upload, list and delete recordings on the server."""

    def __init__(self, config: Optional[ApiConfig] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        """Initialize the HTTP client.

        Args:
            config: Server location and timeouts
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self._config = config or ApiConfig()
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @classmethod
    def from_dict(cls, data: Dict[str, Any], transport: Optional[httpx.BaseTransport] = None) -> "RecordingsClient":
        return cls(ApiConfig.from_dict(data), transport=transport)

    def upload_recording(self, audio_bytes: bytes, filename: str, mime_type: str = 'audio/webm') -> Dict[str, Any]:
        """Upload one sample under the ``audio`` multipart field.

        Returns:
            The ``data`` object of the server response (``filename`` and ``size``).
        """
        validate_filename(filename)
        response = self._request(
            'POST',
            '/api/upload',
            bad_request=InvalidFilename,
            files={'audio': (filename, audio_bytes, mime_type)},
        )
        data = _json_body(response).get('data') or {}
        logger.info(f"Uploaded {data.get('filename', filename)} ({data.get('size', len(audio_bytes))} bytes)")
        return data

    def list_recordings(self, subject_id: str) -> List[str]:
        validate_subject_id(subject_id)
        response = self._request('GET', f'/api/recordings/{subject_id}', bad_request=InvalidSubjectId)
        return list((_json_body(response).get('data') or {}).get('recordings', []))

    def delete_recording(self, filename: str) -> None:
        validate_filename(filename)
        self._request('DELETE', f"/api/recordings/{quote(filename, safe='')}", bad_request=InvalidFilename)
        logger.info(f"Deleted remote recording {filename}")

    def check_server(self) -> bool:
        """Return True when the health endpoint answers with the expected status."""
        try:
            response = self._client.get(
                '/api/health',
                timeout=self._config.health_timeout,
                headers={'Cache-Control': 'no-cache', 'Pragma': 'no-cache'},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Server health check failed: {e}")
            return False

        if not response.is_success:
            return False
        try:
            return response.json().get('status') == HEALTHY_STATUS
        except ValueError:
            return False

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RecordingsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        bad_request: Type[RecorderError] = UploadRejected,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkTimeout() from e
        except httpx.TransportError as e:
            raise ServerOffline(f"Failed to connect to the server: {e}") from e

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get('message') if isinstance(body, dict) else None
        message = message or f"{method} {url} failed: {response.status_code} {response.reason_phrase}"

        if response.status_code == 400:
            raise bad_request(message)
        raise _STATUS_ERRORS.get(response.status_code, UploadRejected)(message)


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise UploadRejected(f"Unreadable response from {response.request.url.path}") from e
    if not isinstance(body, dict):
        raise UploadRejected(f"Unexpected response from {response.request.url.path}")
    return body
