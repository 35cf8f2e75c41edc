"""
Mushaf: administrative core for a Quran corpus.

Surahs and ayahs with guaranteed positional integrity, translations and
recitations attached to them, conflict-checked reindexing, and bulk
translation exchange.

Example:
    from mushaf import Database, CorpusStore

    db = Database("quran_admin.sqlite")
    corpus = CorpusStore(db)
    corpus.bootstrap_surahs()
"""

__version__ = "1.0.0"

from mushaf.storage import Database
from mushaf.core import (
    AnnotationStore,
    BulkExchange,
    CorpusStore,
    Editor,
    IndexingEngine,
)
from mushaf.exceptions import (
    MushafError,
    ValidationError,
    NotFoundError,
    ConflictError,
    ForeignKeyError,
    StorageError,
)

__all__ = [
    "__version__",
    "Database",
    "CorpusStore",
    "AnnotationStore",
    "IndexingEngine",
    "BulkExchange",
    "Editor",
    "MushafError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ForeignKeyError",
    "StorageError",
]
