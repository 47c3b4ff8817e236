"""Recordings directory: the server-side file store.

Files live flat in one directory and are named by the filename contract, so
a subject's recordings are found by the ``{subject_id}_`` prefix.  Writes go
to a temporary file first and are moved into place with :func:`os.replace`,
which makes each store atomic per file; the last write for a name wins.
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .errors import InvalidFilename, PayloadTooLarge, UnsupportedMediaType
from .filenames import is_valid_filename, validate_filename, validate_subject_id

MAX_FILE_SIZE = 10 * 1024 * 1024


def ensure_directory(path: Path) -> Path:
    """Create *path* if needed and check it is readable and writable."""
    path = Path(path)
    if path.exists():
        logger.debug(f"Uploads directory already exists at: {path}")
    else:
        path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created uploads directory at: {path}")
    if not os.access(path, os.R_OK | os.W_OK):
        raise PermissionError(f"Uploads directory {path} is not readable and writable")
    return path


class RecordingsDirectory:
    """Stores, lists and deletes validated recordings."""

    def __init__(self, storage_dir: str = "uploads/", max_file_size: int = MAX_FILE_SIZE) -> None:
        """Initialize the store.

        Args:
            storage_dir: Directory holding the recordings
            max_file_size: Largest accepted upload in bytes
        """
        self.storage_dir = ensure_directory(Path(storage_dir))
        self.max_file_size = max_file_size

    def check_upload(self, filename: Optional[str], mime_type: Optional[str], size: int = 0) -> str:
        """Validate an upload without touching the filesystem.

        Raises:
            InvalidFilename: If the name breaks the filename contract.
            UnsupportedMediaType: If the MIME type is not ``audio/*``.
            PayloadTooLarge: If *size* exceeds the configured maximum.
        """
        if not is_valid_filename(filename):
            raise InvalidFilename("Invalid filename format provided.")
        if not (mime_type or "").lower().startswith("audio/"):
            raise UnsupportedMediaType("Only audio files are allowed.")
        if size > self.max_file_size:
            raise PayloadTooLarge(
                f"File too large. Max size is {self.max_file_size / (1024 * 1024):g}MB."
            )
        return filename

    def store(self, filename: str, data: bytes, mime_type: str) -> Path:
        """Write *data* under *filename*, replacing any existing file.

        Returns:
            Path of the stored file
        """
        self.check_upload(filename, mime_type, len(data))
        target = self.storage_dir / filename

        fd, tmp_name = tempfile.mkstemp(dir=self.storage_dir, prefix=".upload-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Stored recording: {filename} ({len(data)} bytes)")
        return target

    def list(self, subject_id: str) -> List[str]:
        """Return the names of every valid recording for *subject_id*, sorted.

        Raises:
            InvalidSubjectId: If *subject_id* is not digits only.
        """
        validate_subject_id(subject_id)
        prefix = f"{subject_id}_"
        return sorted(
            entry.name
            for entry in self.storage_dir.iterdir()
            if entry.name.startswith(prefix) and is_valid_filename(entry.name) and entry.is_file()
        )

    def delete(self, filename: str) -> bool:
        """Delete a recording.

        Returns:
            True if a file was removed, False if it did not exist

        Raises:
            InvalidFilename: If the name breaks the filename contract.
        """
        validate_filename(filename)
        try:
            (self.storage_dir / filename).unlink()
        except FileNotFoundError:
            logger.info(f"File not found, nothing to delete: {filename}")
            return False
        logger.info(f"Deleted recording: {filename}")
        return True
