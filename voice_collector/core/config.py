"""Configuration management for Voice Collector.

This module provides configuration constants and the :class:`AppConfig` class
which merges defaults with values from an optional YAML file
(``.voice-collector.yml`` in the working directory) and from environment
variables.

Precedence (lowest first)
-------------------------
1. Built-in defaults below.
2. ``.voice-collector.yml``: keys of the ``server:`` and ``client:`` sections
   are flattened into the configuration, other top-level keys are copied as-is.
3. Environment variables:

   =================  ==================  ===========================
   Variable           Key                 Default
   =================  ==================  ===========================
   ``PORT``           ``port``            ``3001``
   ``HOST``           ``host``            ``0.0.0.0``
   ``MAX_FILE_SIZE``  ``max_file_size``   ``10485760`` (10 MiB)
   ``UPLOAD_DIR``     ``upload_dir``      ``uploads/``
   ``API_URL``        ``api_url``         ``http://localhost:3001``
   ``QUEUE_DIR``      ``queue_dir``       ``.voice-collector/queue/``
   =================  ==================  ===========================

Example file:

.. code-block:: yaml

    server:
      port: 3001
      upload_dir: /srv/recordings
      max_file_size: 5242880
    client:
      api_url: http://recorder.local:3001
      time_limit_ms: 4000
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .api_client import API_TIMEOUT, API_URL, HEALTH_TIMEOUT
from .capture import TIME_LIMIT_MS
from .recording import RATE
from .storage import MAX_FILE_SIZE

CONFIG_FILE = '.voice-collector.yml'

# Server
HOST = '0.0.0.0'
PORT = 3001
UPLOAD_DIR = 'uploads/'

# Client
QUEUE_DIR = '.voice-collector/queue/'

ENV_VARS = {
    'PORT': ('port', int),
    'HOST': ('host', str),
    'MAX_FILE_SIZE': ('max_file_size', int),
    'UPLOAD_DIR': ('upload_dir', str),
    'API_URL': ('api_url', str),
    'QUEUE_DIR': ('queue_dir', str),
}

_SECTIONS = ('server', 'client')


class AppConfig:
    """Application configuration management."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Initialize configuration.

        Args:
            environ: Environment to read overrides from, defaults to ``os.environ``
        """
        self._config: Dict[str, Any] = {
            'host': HOST,
            'port': PORT,
            'upload_dir': UPLOAD_DIR,
            'max_file_size': MAX_FILE_SIZE,
            'api_url': API_URL,
            'api_timeout': API_TIMEOUT,
            'health_timeout': HEALTH_TIMEOUT,
            'queue_dir': QUEUE_DIR,
            'time_limit_ms': TIME_LIMIT_MS,
            'sample_rate': RATE,
        }
        self._load_yaml_config()
        self._load_environment(os.environ if environ is None else environ)

    def _load_yaml_config(self) -> None:
        """Load optional YAML configuration from project root."""
        config_path = Path.cwd() / CONFIG_FILE
        if not config_path.exists():
            return

        content = yaml.safe_load(config_path.read_text(encoding='utf-8'))
        if not content:
            return

        if not isinstance(content, dict):
            raise ValueError(f"Configuration in {CONFIG_FILE} must be a mapping")

        for key, value in content.items():
            if key in _SECTIONS:
                if not isinstance(value, dict):
                    raise ValueError(f"Section '{key}' in {CONFIG_FILE} must be a mapping")
                self._config.update(value)
            else:
                self._config[key] = value

    def _load_environment(self, environ: Mapping[str, str]) -> None:
        for var, (key, cast) in ENV_VARS.items():
            raw = environ.get(var)
            if raw is None or raw == '':
                continue
            try:
                self._config[key] = cast(raw)
            except ValueError as e:
                raise ValueError(f"Environment variable {var} must be {cast.__name__}, got {raw!r}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._config[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    def get_upload_dir(self) -> Path:
        return Path(self._config.get('upload_dir', UPLOAD_DIR))

    def get_queue_dir(self) -> Path:
        """Return the local spool root, creating it if needed."""
        path = Path(self._config.get('queue_dir', QUEUE_DIR))
        path.mkdir(parents=True, exist_ok=True)
        return path
