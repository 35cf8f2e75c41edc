"""
Translation and audio recitation storage.

Annotations are keyed by (ayah, source) and (ayah, reciter). Every write is a
single upsert statement, so concurrent editors of the same pair never create
duplicates. Ayah ids are foreign, read-only references here: this module never
creates or changes an ayah.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from mushaf.config import get_settings
from mushaf.data import validate_surah_id
from mushaf.exceptions import ForeignKeyError, NotFoundError, ValidationError
from mushaf.models import (
    AudioRecitation,
    AudioStatus,
    Language,
    Reciter,
    SourceStatus,
    Translation,
    TranslationSource,
)
from mushaf.storage.database import Database
from mushaf.storage.files import LocalFileStorage
from mushaf.storage.filters import FilterSet, Operator

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 3

_TRANSLATION_SELECT = """
    SELECT
      t.*,
      ts.name AS source_name,
      l.code AS language_code,
      a.surah_id,
      a.ayah_number,
      a.number_in_quran
    FROM translations t
    JOIN ayahs a ON t.ayah_id = a.id
    JOIN translation_sources ts ON t.source_id = ts.id
    JOIN languages l ON ts.language_id = l.id
"""

_SOURCE_SELECT = """
    SELECT ts.*, l.code AS language_code
    FROM translation_sources ts
    JOIN languages l ON ts.language_id = l.id
"""

_AUDIO_SELECT = """
    SELECT af.*, r.name AS reciter_name
    FROM audio_files af
    JOIN reciters r ON af.reciter_id = r.id
"""

_SEARCH_COLUMNS = frozenset({"t.text", "t.source_id", "t.is_approved", "a.surah_id"})


@dataclass
class AnnotationStats:
    """Aggregate counts across translations and recitations."""

    total_translations: int = 0
    total_sources: int = 0
    approved_translations: int = 0
    translated_ayahs: int = 0
    total_audio_files: int = 0
    total_reciters: int = 0
    ayahs_with_audio: int = 0
    total_file_size: int = 0


class AnnotationStore:
    """
    Upsert-semantics storage for translations and audio recitations.

    Args:
        db: Storage handle
        file_storage: Used for best-effort removal of recitation files; when
            omitted, rows are removed and files are left in place
    """

    def __init__(self, db: Database, file_storage: Optional[LocalFileStorage] = None):
        self.db = db
        self.file_storage = file_storage

    # ------------------------------------------------------------------
    # Languages and sources
    # ------------------------------------------------------------------

    def get_languages(self) -> list[Language]:
        rows = self.db.fetch_all("SELECT * FROM languages ORDER BY name")
        return [Language.model_validate(dict(r)) for r in rows]

    def get_language_by_code(self, code: str) -> Language:
        row = self.db.fetch_one("SELECT * FROM languages WHERE code = ?", (code,))
        if row is None:
            raise NotFoundError(f"Language '{code}' not found", entity="language", entity_id=code)
        return Language.model_validate(dict(row))

    def create_language(self, code: str, name: str, direction: str = "ltr") -> Language:
        cursor = self.db.execute_query(
            "INSERT INTO languages (code, name, direction) VALUES (?, ?, ?)",
            (code, name, direction),
        )
        logger.info("Created language %s (%s)", code, name)
        return Language(id=cursor.lastrowid, code=code, name=name, direction=direction)

    def get_sources(self, active_only: bool = True) -> list[TranslationSource]:
        query = _SOURCE_SELECT
        params: tuple = ()
        if active_only:
            query += " WHERE ts.status = ?"
            params = (SourceStatus.ACTIVE.value,)
        query += " ORDER BY l.name, ts.name"
        return [TranslationSource.model_validate(dict(r)) for r in self.db.fetch_all(query, params)]

    def get_source(self, source_id: int) -> TranslationSource:
        row = self.db.fetch_one(_SOURCE_SELECT + " WHERE ts.id = ?", (source_id,))
        if row is None:
            raise NotFoundError(f"Translation source {source_id} not found", entity="source", entity_id=source_id)
        return TranslationSource.model_validate(dict(row))

    def create_source(
        self,
        name: str,
        language_code: str,
        author: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TranslationSource:
        """
        Register a translation source.

        Raises:
            ValidationError: Empty name
            ForeignKeyError: Unknown language
            ConflictError: A source with this name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Source name is required")
        language = self.db.fetch_one("SELECT id FROM languages WHERE code = ?", (language_code,))
        if language is None:
            raise ForeignKeyError(
                f"Language '{language_code}' does not exist", reference="language", reference_id=language_code
            )
        cursor = self.db.execute_query(
            "INSERT INTO translation_sources (name, author, language_id, description) VALUES (?, ?, ?, ?)",
            (name.strip(), author, language["id"], description),
        )
        logger.info("Created translation source '%s' (%s)", name, language_code)
        return self.get_source(cursor.lastrowid)

    def set_source_status(self, source_id: int, status: SourceStatus | str) -> TranslationSource:
        status = SourceStatus(status)
        cursor = self.db.execute_query(
            "UPDATE translation_sources SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (status.value, source_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Translation source {source_id} not found", entity="source", entity_id=source_id)
        logger.info("Translation source %s is now %s", source_id, status.value)
        return self.get_source(source_id)

    # ------------------------------------------------------------------
    # Reciters
    # ------------------------------------------------------------------

    def get_reciters(self, active_only: bool = True) -> list[Reciter]:
        query = "SELECT * FROM reciters"
        params: tuple = ()
        if active_only:
            query += " WHERE status = ?"
            params = (SourceStatus.ACTIVE.value,)
        query += " ORDER BY name"
        return [Reciter.model_validate(dict(r)) for r in self.db.fetch_all(query, params)]

    def get_reciter(self, reciter_id: int) -> Reciter:
        row = self.db.fetch_one("SELECT * FROM reciters WHERE id = ?", (reciter_id,))
        if row is None:
            raise NotFoundError(f"Reciter {reciter_id} not found", entity="reciter", entity_id=reciter_id)
        return Reciter.model_validate(dict(row))

    def create_reciter(
        self,
        name: str,
        name_arabic: Optional[str] = None,
        style: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Reciter:
        if not name or not name.strip():
            raise ValidationError("Reciter name is required")
        cursor = self.db.execute_query(
            "INSERT INTO reciters (name, name_arabic, style, country) VALUES (?, ?, ?, ?)",
            (name.strip(), name_arabic, style, country),
        )
        logger.info("Created reciter '%s'", name)
        return self.get_reciter(cursor.lastrowid)

    def set_reciter_status(self, reciter_id: int, status: SourceStatus | str) -> Reciter:
        status = SourceStatus(status)
        cursor = self.db.execute_query(
            "UPDATE reciters SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (status.value, reciter_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Reciter {reciter_id} not found", entity="reciter", entity_id=reciter_id)
        return self.get_reciter(reciter_id)

    # ------------------------------------------------------------------
    # Reference checks
    # ------------------------------------------------------------------

    def require_reference(self, table: str, reference: str, reference_id: int) -> None:
        row = self.db.fetch_one(f"SELECT 1 FROM {table} WHERE id = ?", (reference_id,))
        if row is None:
            raise ForeignKeyError(
                f"{reference.capitalize()} {reference_id} does not exist",
                reference=reference,
                reference_id=reference_id,
            )

    # ------------------------------------------------------------------
    # Translations
    # ------------------------------------------------------------------

    def upsert_translation(
        self,
        ayah_id: int,
        source_id: int,
        text: str,
        footnotes: Optional[str] = None,
        approved: bool = False,
        approved_by: Optional[int] = None,
    ) -> Translation:
        """
        Create or update the translation of one ayah for one source.

        An existing row for the pair is updated in place. Approval keeps its
        original approver and timestamp while the text stays approved, and is
        cleared when ``approved`` is False.

        Raises:
            ValidationError: Empty text
            ForeignKeyError: Unknown ayah or source
        """
        if text is None or not str(text).strip():
            raise ValidationError("Translation text is required")
        self.require_reference("ayahs", "ayah", ayah_id)
        self.require_reference("translation_sources", "source", source_id)

        self.db.execute_query(
            """
            INSERT INTO translations (ayah_id, source_id, text, footnotes, is_approved, approved_by, approved_at)
            VALUES (?, ?, ?, ?, ?, ?, CASE WHEN ? THEN CURRENT_TIMESTAMP END)
            ON CONFLICT(ayah_id, source_id) DO UPDATE SET
              text = excluded.text,
              footnotes = excluded.footnotes,
              is_approved = excluded.is_approved,
              approved_by = CASE
                WHEN excluded.is_approved = 0 THEN NULL
                WHEN translations.is_approved = 1 THEN COALESCE(translations.approved_by, excluded.approved_by)
                ELSE excluded.approved_by END,
              approved_at = CASE
                WHEN excluded.is_approved = 0 THEN NULL
                WHEN translations.is_approved = 1 THEN COALESCE(translations.approved_at, excluded.approved_at)
                ELSE excluded.approved_at END,
              updated_at = CURRENT_TIMESTAMP
            """,
            (ayah_id, source_id, text, footnotes, int(bool(approved)),
             approved_by if approved else None, int(bool(approved))),
        )
        logger.debug("Upserted translation for ayah %s, source %s", ayah_id, source_id)
        return self.get_translation(ayah_id, source_id)

    def get_translation(self, ayah_id: int, source_id: int) -> Translation:
        row = self.db.fetch_one(
            _TRANSLATION_SELECT + " WHERE t.ayah_id = ? AND t.source_id = ?",
            (ayah_id, source_id),
        )
        if row is None:
            raise NotFoundError(
                f"No translation for ayah {ayah_id} from source {source_id}",
                entity="translation",
            )
        return Translation.model_validate(dict(row))

    def get_translations_for_ayah(self, ayah_id: int) -> list[Translation]:
        rows = self.db.fetch_all(
            _TRANSLATION_SELECT + " WHERE t.ayah_id = ? ORDER BY l.name, ts.name",
            (ayah_id,),
        )
        return [Translation.model_validate(dict(r)) for r in rows]

    def get_by_source_and_surah(self, surah_id: int, source_id: int) -> list[Translation]:
        validate_surah_id(surah_id)
        rows = self.db.fetch_all(
            _TRANSLATION_SELECT + " WHERE a.surah_id = ? AND t.source_id = ? ORDER BY a.ayah_number",
            (surah_id, source_id),
        )
        return [Translation.model_validate(dict(r)) for r in rows]

    def search(
        self,
        query: str,
        source_id: Optional[int] = None,
        limit: Optional[int] = None,
        surah_id: Optional[int] = None,
        approved_only: bool = False,
    ) -> list[Translation]:
        """
        Substring search over translation text, in corpus order.

        Queries shorter than three characters are rejected outright so short
        substrings never trigger a full scan.

        Raises:
            ValidationError: Query too short or limit out of range
        """
        settings = get_settings()
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationError(f"Search query must be at least {MIN_SEARCH_LENGTH} characters long")
        limit = settings.search_limit if limit is None else limit
        if limit < 1:
            raise ValidationError("Search limit must be a positive integer")
        limit = min(limit, settings.max_search_limit)

        filters = FilterSet(allowed=_SEARCH_COLUMNS).where("t.text", Operator.CONTAINS, query)
        filters.where_if(source_id, "t.source_id")
        filters.where_if(surah_id, "a.surah_id")
        if approved_only:
            filters.where("t.is_approved", Operator.EQ, 1)
        clause, params = filters.to_sql()

        rows = self.db.fetch_all(
            _TRANSLATION_SELECT + f" WHERE {clause} ORDER BY a.number_in_quran LIMIT ?",
            (*params, limit),
        )
        return [Translation.model_validate(dict(r)) for r in rows]

    # ------------------------------------------------------------------
    # Audio recitations
    # ------------------------------------------------------------------

    def upsert_audio(
        self,
        ayah_id: int,
        reciter_id: int,
        file_path: str,
        file_name: str,
        file_size: Optional[int] = None,
        format: str = "mp3",
        uploaded_by: Optional[int] = None,
    ) -> AudioRecitation:
        """
        Attach a recitation file to an (ayah, reciter) pair, replacing any
        existing recitation for that pair.

        The file a replaced row pointed at is removed on a best-effort basis.

        Raises:
            ForeignKeyError: Unknown ayah or reciter, naming which one
        """
        if not file_path or not file_name:
            raise ValidationError("File path and file name are required")
        self.require_reference("ayahs", "ayah", ayah_id)
        self.require_reference("reciters", "reciter", reciter_id)

        # The replaced path must be read under the same write lock as the upsert
        with self.db.transaction():
            previous = self.db.fetch_one(
                "SELECT file_path FROM audio_files WHERE ayah_id = ? AND reciter_id = ?",
                (ayah_id, reciter_id),
            )
            self.db.execute_query(
                """
                INSERT INTO audio_files (ayah_id, reciter_id, file_path, file_name, file_size, format, uploaded_by)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(ayah_id, reciter_id) DO UPDATE SET
                  file_path = excluded.file_path,
                  file_name = excluded.file_name,
                  file_size = excluded.file_size,
                  format = excluded.format,
                  is_active = 1,
                  uploaded_by = excluded.uploaded_by,
                  updated_at = CURRENT_TIMESTAMP
                """,
                (ayah_id, reciter_id, file_path, file_name, file_size, format.lower().lstrip("."), uploaded_by),
            )
            row = self.db.fetch_one(
                _AUDIO_SELECT + " WHERE af.ayah_id = ? AND af.reciter_id = ?",
                (ayah_id, reciter_id),
            )
        audio = AudioRecitation.model_validate(dict(row))

        if previous is not None and previous["file_path"] != file_path:
            self.discard_file(previous["file_path"])
        logger.info("Stored recitation %s for ayah %s, reciter %s", audio.id, ayah_id, reciter_id)
        return audio

    def get_audio(self, audio_id: int) -> AudioRecitation:
        row = self.db.fetch_one(_AUDIO_SELECT + " WHERE af.id = ?", (audio_id,))
        if row is None:
            raise NotFoundError(f"Audio file {audio_id} not found", entity="audio", entity_id=audio_id)
        return AudioRecitation.model_validate(dict(row))

    def get_audio_for_ayah(self, ayah_id: int) -> list[AudioRecitation]:
        rows = self.db.fetch_all(
            _AUDIO_SELECT + " WHERE af.ayah_id = ? AND af.is_active = 1 ORDER BY r.name",
            (ayah_id,),
        )
        return [AudioRecitation.model_validate(dict(r)) for r in rows]

    def delete_audio(self, audio_id: int) -> AudioRecitation:
        """
        Remove a recitation row, then try to remove its file.

        The database row is authoritative: a failure to remove the file is
        logged and does not fail the operation.

        Returns:
            The removed recitation

        Raises:
            NotFoundError: No such recitation
        """
        audio = self.get_audio(audio_id)
        cursor = self.db.execute_query("DELETE FROM audio_files WHERE id = ?", (audio_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Audio file {audio_id} not found", entity="audio", entity_id=audio_id)
        self.discard_file(audio.file_path)
        logger.info("Deleted recitation %s (ayah %s)", audio_id, audio.ayah_id)
        return audio

    def discard_file(self, path: str) -> None:
        """Best-effort removal of a stored file; failures are logged, never raised."""
        if self.file_storage is None:
            return
        try:
            self.file_storage.delete(path)
        except OSError as e:
            logger.warning("Could not delete audio file %s from storage: %s", path, e)

    def get_audio_status_for_surah(self, surah_id: int) -> list[AudioStatus]:
        """Per-ayah recitation availability for a surah, in one aggregated query."""
        validate_surah_id(surah_id)
        rows = self.db.fetch_all(
            """
            SELECT
              a.id AS ayah_id,
              a.ayah_number,
              COUNT(af.id) AS audio_count,
              MAX(af.uploaded_at) AS latest_upload
            FROM ayahs a
            LEFT JOIN audio_files af ON a.id = af.ayah_id AND af.is_active = 1
            WHERE a.surah_id = ?
            GROUP BY a.id, a.ayah_number
            ORDER BY a.ayah_number
            """,
            (surah_id,),
        )
        return [
            AudioStatus(
                ayah_id=r["ayah_id"],
                ayah_number=r["ayah_number"],
                has_audio=r["audio_count"] > 0,
                audio_count=r["audio_count"],
                latest_upload=r["latest_upload"],
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_stats(self) -> AnnotationStats:
        t = self.db.fetch_one(
            """
            SELECT
              COUNT(*) AS total_translations,
              COUNT(DISTINCT source_id) AS total_sources,
              COALESCE(SUM(CASE WHEN is_approved = 1 THEN 1 ELSE 0 END), 0) AS approved_translations,
              COUNT(DISTINCT ayah_id) AS translated_ayahs
            FROM translations
            """
        )
        a = self.db.fetch_one(
            """
            SELECT
              COUNT(*) AS total_audio_files,
              COUNT(DISTINCT reciter_id) AS total_reciters,
              COUNT(DISTINCT ayah_id) AS ayahs_with_audio,
              COALESCE(SUM(file_size), 0) AS total_file_size
            FROM audio_files
            WHERE is_active = 1
            """
        )
        return AnnotationStats(**dict(t), **dict(a))
