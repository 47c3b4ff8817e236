"""Recording filename contract shared by the client and the server.

A recording is stored under a name derived from who recorded it, which run it
belongs to and which item was spoken::

    {subject_id}_{repetition}{item}.{ext}

    42_1A.webm        # student 42, run 1, letter A
    42_3Backspace.wav # student 42, run 3, command "Backspace"

``subject_id`` and ``repetition`` are one or more digits, ``item`` is a single
letter A-Z or one of the command words (matched case-insensitively) and
``ext`` is ``wav`` or ``webm``.  The same validator guards uploads, listings
and deletions, so a name that can be stored can also be listed and removed.
"""

import re
from dataclasses import dataclass

from .catalogue import COMMANDS, DEFAULT_CATALOGUE, Catalogue
from .errors import InvalidFilename, InvalidSubjectId

EXTENSIONS = ('wav', 'webm')
FORBIDDEN_CHARS = frozenset('<>:"/\\|?*')

_ITEM_TOKEN = '[A-Z]|' + '|'.join(COMMANDS)
FILENAME_PATTERN = re.compile(
    rf'^(?P<subject>\d+)_(?P<repetition>\d+)(?P<item>{_ITEM_TOKEN})\.(?P<ext>{"|".join(EXTENSIONS)})$',
    re.IGNORECASE,
)
SUBJECT_ID_PATTERN = re.compile(r'^\d+$')


@dataclass(frozen=True)
class FilenameParts:
    """Decoded components of a recording filename."""

    subject_id: str
    repetition: int
    item: str
    extension: str


def encode_filename(subject_id: str, repetition: int, item: str, extension: str = 'webm') -> str:
    """Build the canonical filename for one recording.

    Raises:
        InvalidFilename: If the parts do not produce a valid name.
    """
    name = f"{subject_id}_{repetition}{item}.{extension}"
    validate_filename(name)
    return name


def decode_filename(name: str, catalogue: Catalogue = DEFAULT_CATALOGUE) -> FilenameParts:
    """Split a valid filename back into its parts.

    The item is returned in its catalogue spelling, so ``42_1done.webm``
    decodes to item ``'Done'``.

    Raises:
        InvalidFilename: If *name* does not satisfy the contract.
    """
    validate_filename(name)
    match = FILENAME_PATTERN.match(name)
    token = match.group('item')
    item = catalogue.lookup(token) or token.upper()
    return FilenameParts(
        subject_id=match.group('subject'),
        repetition=int(match.group('repetition')),
        item=item,
        extension=match.group('ext').lower(),
    )


def _has_unsafe_chars(name: str) -> bool:
    if '..' in name:
        return True
    if any(ch in FORBIDDEN_CHARS for ch in name):
        return True
    return any(ord(ch) < 32 or ord(ch) == 127 for ch in name)


def is_valid_filename(name: object) -> bool:
    """Return True if *name* is a safe, well-formed recording filename."""
    if not isinstance(name, str) or not name:
        return False
    if _has_unsafe_chars(name):
        return False
    return FILENAME_PATTERN.match(name) is not None


def validate_filename(name: object) -> str:
    """Return *name* unchanged or raise :class:`InvalidFilename`."""
    if not is_valid_filename(name):
        raise InvalidFilename()
    return name


def is_valid_subject_id(subject_id: object) -> bool:
    return isinstance(subject_id, str) and SUBJECT_ID_PATTERN.match(subject_id) is not None


def validate_subject_id(subject_id: object) -> str:
    if not is_valid_subject_id(subject_id):
        raise InvalidSubjectId()
    return subject_id
