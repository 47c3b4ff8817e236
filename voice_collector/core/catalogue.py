"""The fixed catalogue of items a student records.

The catalogue is 26 single letters followed by 9 command words, recorded
``runs`` times each.  It is built once at import time as
:data:`DEFAULT_CATALOGUE` and handed to every component that needs it.
"""

import string
from dataclasses import dataclass
from typing import Optional, Tuple

LETTERS: Tuple[str, ...] = tuple(string.ascii_uppercase)
COMMANDS: Tuple[str, ...] = (
    'Done', 'Enter', 'Delete', 'Repeat', 'Backspace', 'Again', 'Undo', 'Tutorial', 'Screening',
)
TOTAL_RUNS = 3


@dataclass(frozen=True)
class Catalogue:
    """Ordered items and the number of runs through them."""

    items: Tuple[str, ...] = LETTERS + COMMANDS
    runs: int = TOTAL_RUNS

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("Catalogue must contain at least one item")
        if self.runs < 1:
            raise ValueError(f"Catalogue needs at least one run, got {self.runs}")

    @property
    def items_per_run(self) -> int:
        return len(self.items)

    @property
    def total_slots(self) -> int:
        return len(self.items) * self.runs

    def lookup(self, token: str) -> Optional[str]:
        """Return the catalogue spelling of *token*, matching case-insensitively."""
        lowered = token.lower()
        for item in self.items:
            if item.lower() == lowered:
                return item
        return None


DEFAULT_CATALOGUE = Catalogue()
