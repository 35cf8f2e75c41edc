"""
Local file storage for recitation uploads.
"""

import errno
import logging
import os
import secrets
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from mushaf.config import get_settings
from mushaf.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_AUDIO_EXTENSIONS = (".mp3", ".wav", ".m4a")


@dataclass
class StoredFile:
    """Where an uploaded file ended up."""

    path: str
    file_name: str
    size: int
    format: str


def generate_unique_filename(original_name: str, prefix: str = "") -> str:
    """``<prefix><stem>_<millis>_<random><ext>`` with whitespace replaced by underscores."""
    original = Path(original_name)
    stem = "_".join(original.stem.split()) or "file"
    return f"{prefix}{stem}_{int(time.time() * 1000)}_{secrets.token_hex(4)}{original.suffix.lower()}"


def validate_audio_file(file_name: str, size: int, max_size: Optional[int] = None) -> str:
    """
    Check an upload's extension and size.

    Returns:
        The format tag (extension without the dot)

    Raises:
        ValidationError: Listing every problem found
    """
    max_size = max_size or get_settings().max_audio_size_bytes
    errors = []
    if size > max_size:
        errors.append(f"File size exceeds {max_size // (1024 * 1024)}MB limit")
    ext = Path(file_name).suffix.lower()
    if ext not in ALLOWED_AUDIO_EXTENSIONS:
        errors.append(f"Invalid file extension. Allowed extensions: {', '.join(ALLOWED_AUDIO_EXTENSIONS)}")
    if errors:
        raise ValidationError("; ".join(errors))
    return ext.lstrip(".")


class LocalFileStorage:
    """
    Stores recitation files under a base directory.

    Files are laid out as ``<base_dir>/<subdir>/<unique name>``.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or get_settings().audio_dir)

    def save(self, stream: BinaryIO, original_name: str, subdir: str = "") -> StoredFile:
        """
        Copy a byte stream into storage.

        Args:
            stream: Readable binary stream
            original_name: Client-side file name, used for the extension
            subdir: Optional sub-directory (e.g. the surah number)

        Returns:
            StoredFile with the final path and size
        """
        target_dir = self.base_dir / subdir if subdir else self.base_dir
        file_name = generate_unique_filename(original_name)
        path = target_dir / file_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as out:
                shutil.copyfileobj(stream, out)
        except OSError as e:
            raise StorageError(f"Failed to store {original_name}: {e}") from e

        size = path.stat().st_size
        logger.debug("Stored %s as %s (%s bytes)", original_name, path, size)
        return StoredFile(
            path=str(path),
            file_name=file_name,
            size=size,
            format=Path(original_name).suffix.lower().lstrip(".") or "mp3",
        )

    def delete(self, path: str | os.PathLike) -> bool:
        """
        Remove a stored file.

        Returns:
            True if removed, False if it was already absent

        Raises:
            OSError: For any other failure
        """
        try:
            os.unlink(path)
        except OSError as e:
            if e.errno == errno.ENOENT:
                return False
            raise
        logger.debug("Deleted stored file %s", path)
        return True

    def exists(self, path: str | os.PathLike) -> bool:
        return Path(path).is_file()
