"""Session sequencer: walks the (run, item) slots of a recording session.

Slots are visited run by run, item by item.  ``advance`` moves one slot
forward after a sample for the current slot is safely queued; ``redo`` moves
one slot back so the previous item can be recorded again.  Advancing from the
last slot of the last run completes the session, after which the sequencer
refuses every further transition.
"""

from dataclasses import dataclass

from .catalogue import DEFAULT_CATALOGUE, Catalogue
from .errors import SessionComplete


@dataclass(frozen=True)
class SessionPosition:
    """The slot that will be recorded next. ``run_index`` is 1-based."""

    run_index: int = 1
    item_index: int = 0


class SessionSequencer:
    """State machine over ``catalogue.items x catalogue.runs`` slots."""

    def __init__(self, catalogue: Catalogue = DEFAULT_CATALOGUE) -> None:
        self._catalogue = catalogue
        self._position = SessionPosition()
        self._complete = False

    @property
    def catalogue(self) -> Catalogue:
        return self._catalogue

    @property
    def position(self) -> SessionPosition:
        return self._position

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def current_item(self) -> str:
        return self._catalogue.items[self._position.item_index]

    @property
    def current_run(self) -> int:
        return self._position.run_index

    @property
    def is_first_slot(self) -> bool:
        return self._position == SessionPosition()

    def completed_slots(self) -> int:
        if self._complete:
            return self._catalogue.total_slots
        runs_completed = self._position.run_index - 1
        return runs_completed * self._catalogue.items_per_run + self._position.item_index

    def progress(self) -> float:
        """Percentage of slots recorded so far, 0 to 100."""
        return self.completed_slots() / self._catalogue.total_slots * 100

    def advance(self) -> bool:
        """Move to the next slot.

        Returns:
            True if this call completed the session.

        Raises:
            SessionComplete: If the session was already complete.
        """
        if self._complete:
            raise SessionComplete()

        run, item = self._position.run_index, self._position.item_index
        if item < self._catalogue.items_per_run - 1:
            self._position = SessionPosition(run, item + 1)
        elif run < self._catalogue.runs:
            self._position = SessionPosition(run + 1, 0)
        else:
            self._complete = True
        return self._complete

    def redo(self) -> bool:
        """Step back one slot. A no-op on the very first slot.

        Returns:
            True if the position moved.

        Raises:
            SessionComplete: If the session is already complete.
        """
        if self._complete:
            raise SessionComplete()

        run, item = self._position.run_index, self._position.item_index
        if item > 0:
            self._position = SessionPosition(run, item - 1)
        elif run > 1:
            self._position = SessionPosition(run - 1, self._catalogue.items_per_run - 1)
        else:
            return False
        return True
