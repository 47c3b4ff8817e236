"""Upload/sync queue for captured samples.

:meth:`SyncQueue.enqueue` writes the audio to a local spool directory and
appends a :class:`~voice_collector.core.log.SyncRecord` to the subject's sync
log before it returns, so a sample is never lost to a network failure.  It
then makes one fire-and-forget upload attempt on a daemon thread; on success
the record is marked synced, on failure a notice is emitted and the record
stays unsynced until an explicit :meth:`SyncQueue.resync` pass.

Spool layout::

    {queue_dir}/{subject_id}/sync.jsonl
    {queue_dir}/{subject_id}/{record_id}_{filename}
"""

import datetime
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from loguru import logger

from .api_client import RecordingsClient
from .errors import RecorderError
from .filenames import encode_filename, validate_subject_id
from .log import JsonlSyncLog, SyncLog, SyncRecord

SYNC_LOG_FILE = 'sync.jsonl'


@dataclass
class RecordingSample:
    """Audio captured for one slot of a session."""

    subject_id: str
    item: str
    repetition: int
    audio_bytes: bytes
    captured_at: datetime.datetime = field(default_factory=datetime.datetime.now)
    extension: str = 'webm'
    mime_type: str = 'audio/webm'

    @property
    def filename(self) -> str:
        return encode_filename(self.subject_id, self.repetition, self.item, self.extension)


class SyncQueue:
    """Durable local queue with best-effort upload to the recordings server."""

    def __init__(
        self,
        subject_id: str,
        queue_dir: Path,
        client: Optional[RecordingsClient] = None,
        sync_log: Optional[SyncLog] = None,
        on_notice: Optional[Callable[[str], None]] = None,
        background: bool = True,
    ) -> None:
        """Initialize the queue for one subject.

        Args:
            subject_id: Digits-only student ID the queue belongs to
            queue_dir: Root of the local spool; one sub-directory per subject
            client: Server client; ``None`` keeps every sample local
            sync_log: Record store, defaults to a JSONL file in the spool
            on_notice: Called with a human-readable message for non-fatal events
            background: Upload on a daemon thread instead of inline
        """
        self._subject_id = validate_subject_id(subject_id)
        self._spool_dir = Path(queue_dir) / subject_id
        self._spool_dir.mkdir(parents=True, exist_ok=True)
        self._log = sync_log or JsonlSyncLog(self._spool_dir / SYNC_LOG_FILE)
        self._client = client
        self._on_notice = on_notice
        self._background = background
        self._online = client is not None
        self._lock = threading.Lock()
        self._inflight: Dict[str, threading.Thread] = {}

    @property
    def subject_id(self) -> str:
        return self._subject_id

    @property
    def online(self) -> bool:
        return self._online

    @property
    def sync_log(self) -> SyncLog:
        return self._log

    def records(self) -> List[SyncRecord]:
        return self._log.records()

    def pending(self) -> List[SyncRecord]:
        return self._log.list_unsynced()

    def check_server(self) -> bool:
        """Refresh the online flag from the server health check."""
        self._online = self._client is not None and self._client.check_server()
        if not self._online:
            self._notify('Server is not available. Recordings will be kept locally.')
        return self._online

    def enqueue(self, sample: RecordingSample) -> SyncRecord:
        """Persist *sample* locally, then start one upload attempt.

        Raises:
            ValueError: If the sample belongs to another subject.
            OSError: If the sample cannot be written to the spool.
        """
        if sample.subject_id != self._subject_id:
            raise ValueError(f"Sample for subject {sample.subject_id} queued for {self._subject_id}")

        record_id = uuid.uuid4().hex
        filename = sample.filename
        audio_path = self._spool_dir / f"{record_id}_{filename}"

        with self._lock:
            audio_path.write_bytes(sample.audio_bytes)
            record = SyncRecord(
                id=record_id,
                subject_id=sample.subject_id,
                item=sample.item,
                repetition=sample.repetition,
                filename=filename,
                audio_url=str(audio_path),
                mime_type=sample.mime_type,
                timestamp=sample.captured_at.replace(microsecond=0).isoformat(),
            )
            self._log.append(record)
        logger.debug(f"Queued {filename} as {record_id}")

        if self._client is None or not self._online:
            self._notify(f"'{sample.item}' (Run {sample.repetition}) saved locally; upload deferred.")
        elif self._background:
            thread = threading.Thread(target=self._upload, args=(record, sample.audio_bytes), daemon=True)
            with self._lock:
                self._inflight = {k: t for k, t in self._inflight.items() if t.is_alive()}
                self._inflight[record.id] = thread
                thread.start()
        else:
            self._upload(record, sample.audio_bytes)
        return record

    def discard(self, item: str, repetition: int) -> Optional[SyncRecord]:
        """Remove the newest unsynced record for (item, repetition).

        A record the server already confirmed is left alone; the next capture
        of the slot overwrites it remotely.  An upload still in flight for the
        record is waited for first, so it cannot land after the re-capture.

        Returns:
            The removed record, or ``None`` if nothing was discarded.
        """
        with self._lock:
            latest = next(
                (r for r in reversed(self._log.records()) if r.item == item and r.repetition == repetition),
                None,
            )
            thread = self._inflight.get(latest.id) if latest is not None else None
        if thread is not None:
            thread.join()

        with self._lock:
            for record in reversed(self._log.records()):
                if record.item != item or record.repetition != repetition:
                    continue
                if record.is_synced:
                    logger.debug(f"Keeping synced {record.filename}; it will be overwritten")
                    return None
                self._log.remove(record.id)
                Path(record.audio_url).unlink(missing_ok=True)
                logger.info(f"Discarded unsynced {record.filename}")
                return record
        return None

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight uploads to finish."""
        with self._lock:
            threads = list(self._inflight.values())
        for thread in threads:
            thread.join(timeout)

    def resync(self) -> int:
        """Retry every unsynced record once.

        Returns:
            Number of records that reached the server.
        """
        self.flush()
        if self._client is None:
            self._notify('No server configured; nothing to resync.')
            return 0

        synced = 0
        for record in self._log.list_unsynced():
            audio_path = Path(record.audio_url)
            if not audio_path.exists():
                logger.warning(f"Audio for {record.filename} is missing from {audio_path}")
                continue
            if self._upload(record, audio_path.read_bytes()):
                synced += 1
        if synced:
            self._online = True
        return synced

    def _upload(self, record: SyncRecord, audio_bytes: bytes) -> bool:
        try:
            self._client.upload_recording(audio_bytes, record.filename, record.mime_type)
        except RecorderError as e:
            self._notify(f"'{record.item}' (Run {record.repetition}) saved locally; upload failed: {e.message}")
            return False

        if not self._log.mark_synced(record.id):
            logger.debug(f"{record.filename} uploaded after it was discarded or already synced")
        return True

    def _notify(self, message: str) -> None:
        logger.warning(message)
        if self._on_notice is not None:
            self._on_notice(message)
