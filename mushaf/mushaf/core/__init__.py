"""
Core modules for the Mushaf library.

This package contains the business logic for:
- Corpus storage with positional integrity (surahs and ayahs)
- Translation and audio recitation upserts
- Conflict-checked reindexing of ayah addresses
- Bulk translation import and export
- Audited editing on behalf of an actor

Primary API:
    from mushaf.core import CorpusStore, AnnotationStore, IndexingEngine

    corpus = CorpusStore(db)
    surah = corpus.get_surah_with_ayahs(1)

    engine = IndexingEngine(db)
    engine.reindex(ayah_id, surah_id=1, ayah_number=1, number_in_quran=1)
"""

# Stores
from mushaf.core.corpus import CorpusStore, CascadeResult, IntegrityReport, CorpusStats
from mushaf.core.annotations import AnnotationStore, AnnotationStats

# Reindexing
from mushaf.core.indexing import IndexingEngine, ReindexProposal, ReindexState

# Bulk exchange
from mushaf.core.exchange import BulkExchange

# Audit and editing
from mushaf.core.activity import ActivityLogger
from mushaf.core.editor import Editor

__all__ = [
    # Stores
    "CorpusStore",
    "CascadeResult",
    "IntegrityReport",
    "CorpusStats",
    "AnnotationStore",
    "AnnotationStats",
    # Reindexing
    "IndexingEngine",
    "ReindexProposal",
    "ReindexState",
    # Bulk exchange
    "BulkExchange",
    # Audit and editing
    "ActivityLogger",
    "Editor",
]
