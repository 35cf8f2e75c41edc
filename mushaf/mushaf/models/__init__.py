"""
Pydantic data models for the Mushaf library.

These models represent the core data structures used throughout the library:
- Surah: Surah metadata
- Ayah: A single verse as stored in the corpus
- Translation / TranslationSource: Translated text and its provenance
- AudioRecitation / Reciter: Recitation files and their provenance
- ActivityRecord: Audit trail entry
- ImportResult / ExportRow: Bulk exchange rows and outcomes
"""

from mushaf.models.surah import Surah, RevelationType
from mushaf.models.ayah import Ayah, AyahWithAudio, SurahWithAyahs
from mushaf.models.annotation import (
    Language,
    TextDirection,
    SourceStatus,
    TranslationSource,
    Translation,
    Reciter,
    AudioRecitation,
    AudioStatus,
)
from mushaf.models.activity import Actor, Role, ActivityRecord, ActivityPage, Pagination
from mushaf.models.exchange import ExportFormat, ExportRow, ImportRow, RowError, ImportResult

__all__ = [
    "Surah",
    "RevelationType",
    "Ayah",
    "AyahWithAudio",
    "SurahWithAyahs",
    "Language",
    "TextDirection",
    "SourceStatus",
    "TranslationSource",
    "Translation",
    "Reciter",
    "AudioRecitation",
    "AudioStatus",
    "Actor",
    "Role",
    "ActivityRecord",
    "ActivityPage",
    "Pagination",
    "ExportFormat",
    "ExportRow",
    "ImportRow",
    "RowError",
    "ImportResult",
]
