"""Recording session: the single owner of position, capture and queue.

A :class:`RecordingSession` asks its capture controller for a sample of the
current slot, hands the sample to the sync queue and only then advances the
sequencer.  A redo steps the sequencer back and drops the abandoned sample
from the queue if the server has not confirmed it yet.
"""

from typing import Optional

from loguru import logger

from .capture import CaptureController
from .catalogue import Catalogue
from .errors import SessionComplete
from .filenames import validate_subject_id
from .log import SyncRecord
from .sequencer import SessionPosition, SessionSequencer
from .sync_queue import RecordingSample, SyncQueue


class RecordingSession:
    """Capture-and-advance workflow for one student."""

    def __init__(
        self,
        subject_id: str,
        controller: CaptureController,
        queue: SyncQueue,
        sequencer: Optional[SessionSequencer] = None,
    ) -> None:
        self._subject_id = validate_subject_id(subject_id)
        if queue.subject_id != subject_id:
            raise ValueError(f"Queue belongs to subject {queue.subject_id}, not {subject_id}")
        self._controller = controller
        self._queue = queue
        self._sequencer = sequencer or SessionSequencer()

    @property
    def subject_id(self) -> str:
        return self._subject_id

    @property
    def catalogue(self) -> Catalogue:
        return self._sequencer.catalogue

    @property
    def controller(self) -> CaptureController:
        return self._controller

    @property
    def queue(self) -> SyncQueue:
        return self._queue

    @property
    def position(self) -> SessionPosition:
        return self._sequencer.position

    @property
    def current_item(self) -> str:
        return self._sequencer.current_item

    @property
    def current_run(self) -> int:
        return self._sequencer.current_run

    @property
    def is_complete(self) -> bool:
        return self._sequencer.is_complete

    @property
    def can_redo(self) -> bool:
        return not self._sequencer.is_complete and not self._sequencer.is_first_slot

    def progress(self) -> float:
        return self._sequencer.progress()

    def check_server(self) -> bool:
        return self._queue.check_server()

    def start_capture(self) -> None:
        """Start recording the current slot. See :meth:`CaptureController.start`."""
        if self._sequencer.is_complete:
            raise SessionComplete()
        self._controller.start()

    def stop_capture(self) -> None:
        """End the running capture early."""
        self._controller.stop()

    def finish_capture(self, timeout: Optional[float] = None) -> SyncRecord:
        """Wait for the running capture, queue its sample and advance.

        The sequencer only moves once the sample is persisted locally; a
        capture or persistence failure leaves the position unchanged.
        """
        audio = self._controller.wait(timeout)
        sample = RecordingSample(
            subject_id=self._subject_id,
            item=self._sequencer.current_item,
            repetition=self._sequencer.current_run,
            audio_bytes=audio.audio_bytes,
            captured_at=audio.captured_at,
            extension=audio.extension,
            mime_type=audio.mime_type,
        )
        record = self._queue.enqueue(sample)
        if self._sequencer.advance():
            logger.info(f"Session for student {self._subject_id} complete")
        return record

    def record_slot(self, timeout: Optional[float] = None) -> SyncRecord:
        """Capture the current slot until the time limit and queue it."""
        self.start_capture()
        return self.finish_capture(timeout)

    def redo(self) -> Optional[SyncRecord]:
        """Step back one slot, discarding that slot's unsynced sample.

        Returns:
            The discarded record, or ``None`` when nothing was discarded.
        """
        if not self._sequencer.redo():
            return None
        return self._queue.discard(self._sequencer.current_item, self._sequencer.current_run)
