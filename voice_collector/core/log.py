"""Durable sync log for captured samples.

Every sample handed to the upload queue is recorded here before any network
call is made.  The log is append-only: marking a record synced or removing it
appends a new entry rather than editing earlier lines, and the current state
of each record is obtained by replaying the file.

Entry types
-----------
``record``
    Written once per captured sample with its item, repetition, local audio
    path and ``is_synced: false``.

``synced``
    Written when the server confirms it stored the sample.

``removed``
    Written when a sample is discarded by a redo.

Example log lines::

    {"type":"record","id":"9f1c...","subject_id":"42","item":"A","repetition":1,"filename":"42_1A.wav","audio_url":".voice-collector/queue/42/42_1A.wav","mime_type":"audio/wav","timestamp":"2026-02-23T14:30:22","is_synced":false}
    {"type":"synced","id":"9f1c...","timestamp":"2026-02-23T14:30:23"}
    {"type":"removed","id":"9f1c...","timestamp":"2026-02-23T14:31:02"}
"""

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger


@dataclass
class SyncRecord:
    """A queued sample and whether the server has confirmed it."""

    id: str
    subject_id: str
    item: str
    repetition: int
    filename: str
    audio_url: str
    mime_type: str
    timestamp: str
    is_synced: bool = False


class SyncLog(ABC):
    """Storage-agnostic append-only record of queued samples."""

    @abstractmethod
    def append(self, record: SyncRecord) -> None:
        """Persist a new record."""

    @abstractmethod
    def records(self) -> List[SyncRecord]:
        """Return every live record, oldest first."""

    @abstractmethod
    def mark_synced(self, record_id: str) -> bool:
        """Flag a record as synced. Returns False if it is unknown or already synced."""

    @abstractmethod
    def remove(self, record_id: str) -> bool:
        """Drop a record. Returns False if it is unknown."""

    def list_unsynced(self) -> List[SyncRecord]:
        return [record for record in self.records() if not record.is_synced]

    def get(self, record_id: str) -> Optional[SyncRecord]:
        for record in self.records():
            if record.id == record_id:
                return record
        return None


class JsonlSyncLog(SyncLog):
    """Sync log kept as a JSON Lines file.

    Thread-safe: the upload thread marks records synced while the session
    thread appends new ones.  A single :class:`threading.Lock` serialises
    reads and writes.

    Args:
        log_path: Path to the ``.jsonl`` file.  Parent directories are
            created automatically.
    """

    def __init__(self, log_path: Path) -> None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        self._log_path = log_path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._log_path

    def append(self, record: SyncRecord) -> None:
        self._append({"type": "record", **asdict(record)})

    def records(self) -> List[SyncRecord]:
        with self._lock:
            return list(self._replay().values())

    def mark_synced(self, record_id: str) -> bool:
        with self._lock:
            record = self._replay().get(record_id)
            if record is None or record.is_synced:
                return False
            self._append({"type": "synced", "id": record_id, "timestamp": _iso()})
            return True

    def remove(self, record_id: str) -> bool:
        with self._lock:
            if record_id not in self._replay():
                return False
            self._append({"type": "removed", "id": record_id, "timestamp": _iso()})
            return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _replay(self) -> Dict[str, SyncRecord]:
        state: Dict[str, SyncRecord] = {}
        if not self._log_path.exists():
            return state

        with self._log_path.open("r", encoding="utf-8") as fh:
            for line_no, line in enumerate(fh, start=1):
                if not line.strip():
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping corrupt line {line_no} in {self._log_path}")
                    continue

                kind = entry.pop("type", None)
                if kind == "record":
                    state[entry["id"]] = SyncRecord(**entry)
                elif kind == "synced" and entry.get("id") in state:
                    state[entry["id"]].is_synced = True
                elif kind == "removed":
                    state.pop(entry.get("id"), None)
        return state

    def _append(self, entry: dict) -> None:
        """Serialise *entry* as JSON and append it to the log file."""
        line = json.dumps(entry, ensure_ascii=False) + "\n"
        with self._lock:
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(line)


def _iso(dt: Optional[datetime] = None) -> str:
    """Return a compact ISO 8601 string for *dt*, defaulting to now."""
    if dt is None:
        dt = datetime.now()
    return dt.replace(microsecond=0).isoformat()
