"""
Storage layer: SQLite handle, query filters and recitation file storage.
"""

from mushaf.storage.database import Database
from mushaf.storage.filters import Filter, FilterSet, Operator
from mushaf.storage.files import LocalFileStorage, StoredFile, validate_audio_file

__all__ = [
    "Database",
    "Filter",
    "FilterSet",
    "Operator",
    "LocalFileStorage",
    "StoredFile",
    "validate_audio_file",
]
