"""
Audited editing operations.

``Editor`` is what a transport layer calls on behalf of an authenticated
actor. Each method performs one store operation and then records it in the
activity log. The activity write happens after the primary write has
committed and can never undo or fail it.
"""

import logging
from typing import BinaryIO, Iterable, Optional

from mushaf.core.activity import ActivityLogger
from mushaf.core.annotations import AnnotationStore
from mushaf.core.corpus import CascadeResult, CorpusStore
from mushaf.core.exchange import BulkExchange, ParsedRow
from mushaf.core.indexing import IndexingEngine
from mushaf.exceptions import NotFoundError
from mushaf.models import Actor, AudioRecitation, Ayah, ImportResult, Translation
from mushaf.storage.database import Database
from mushaf.storage.files import LocalFileStorage, validate_audio_file

logger = logging.getLogger(__name__)

UPDATE_AYAH = "UPDATE_AYAH"
SAVE_TRANSLATION = "SAVE_TRANSLATION"
UPLOAD_AUDIO = "UPLOAD_AUDIO"
DELETE_AUDIO = "DELETE_AUDIO"
REINDEX_AYAH = "REINDEX_AYAH"
DELETE_AYAH = "DELETE_AYAH"
IMPORT_TRANSLATIONS = "IMPORT_TRANSLATIONS"


def _address(ayah: Ayah) -> dict:
    return {
        "surah_id": ayah.surah_id,
        "ayah_number": ayah.ayah_number,
        "number_in_quran": ayah.number_in_quran,
    }


class Editor:
    """
    Mutating operations bound to one actor.

    Permission checks belong to the caller; the actor is trusted for
    attribution only.

    Args:
        db: Storage handle
        actor: Who is making the changes
        file_storage: Where uploaded recitations are written
    """

    def __init__(self, db: Database, actor: Actor, file_storage: Optional[LocalFileStorage] = None):
        self.db = db
        self.actor = actor
        self.file_storage = file_storage or LocalFileStorage()
        self.annotations = AnnotationStore(db, self.file_storage)
        self.corpus = CorpusStore(db, self.annotations)
        self.indexing = IndexingEngine(db)
        self.exchange = BulkExchange(db, self.corpus, self.annotations)
        self.activity = ActivityLogger(db)

    def _audit(self, action: str, entity_type: str, entity_id: Optional[int],
               old_values: Optional[dict] = None, new_values: Optional[dict] = None) -> None:
        self.activity.log(
            self.actor.id,
            action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=self.actor.ip_address,
            user_agent=self.actor.user_agent,
        )

    def update_ayah_text(self, ayah_id: int, text: str, text_uthmani: Optional[str] = None) -> Ayah:
        before = self.corpus.get_ayah(ayah_id)
        after = self.corpus.update_ayah_text(ayah_id, text, text_uthmani)
        self._audit(
            UPDATE_AYAH, "ayah", ayah_id,
            {"text": before.text, "text_uthmani": before.text_uthmani},
            {"text": after.text, "text_uthmani": after.text_uthmani},
        )
        return after

    def save_translation(
        self,
        ayah_id: int,
        source_id: int,
        text: str,
        footnotes: Optional[str] = None,
        approved: bool = False,
    ) -> Translation:
        try:
            before = self.annotations.get_translation(ayah_id, source_id)
        except NotFoundError:
            before = None
        saved = self.annotations.upsert_translation(
            ayah_id, source_id, text, footnotes, approved,
            approved_by=self.actor.id if approved else None,
        )
        self._audit(
            SAVE_TRANSLATION, "translation", saved.id,
            {"text": before.text, "is_approved": before.is_approved} if before else None,
            {"ayah_id": ayah_id, "source_id": source_id, "text": saved.text, "is_approved": saved.is_approved},
        )
        return saved

    def upload_audio(self, ayah_id: int, reciter_id: int, stream: BinaryIO, original_name: str,
                     size: int) -> AudioRecitation:
        """
        Validate, store and attach a recitation file.

        The file is removed again if attaching it fails.
        """
        audio_format = validate_audio_file(original_name, size)
        ayah = self.corpus.get_ayah(ayah_id)
        stored = self.file_storage.save(stream, original_name, subdir=str(ayah.surah_id))
        try:
            audio = self.annotations.upsert_audio(
                ayah_id, reciter_id, stored.path, stored.file_name,
                file_size=stored.size, format=audio_format, uploaded_by=self.actor.id,
            )
        except Exception:
            self.annotations.discard_file(stored.path)
            raise
        self._audit(
            UPLOAD_AUDIO, "audio", audio.id,
            new_values={"ayah_id": ayah_id, "reciter_id": reciter_id, "file_name": audio.file_name},
        )
        return audio

    def delete_audio(self, audio_id: int) -> AudioRecitation:
        removed = self.annotations.delete_audio(audio_id)
        self._audit(
            DELETE_AUDIO, "audio", audio_id,
            old_values={"ayah_id": removed.ayah_id, "reciter_id": removed.reciter_id, "file_path": removed.file_path},
        )
        return removed

    def reindex_ayah(self, ayah_id: int, surah_id: int, ayah_number: int, number_in_quran: int) -> Ayah:
        proposal = self.indexing.propose(ayah_id, surah_id, ayah_number, number_in_quran)
        self.indexing.validate(proposal)
        ayah = self.indexing.commit(proposal)
        self._audit(REINDEX_AYAH, "ayah", ayah_id, _address(proposal.original), _address(ayah))
        return ayah

    def delete_ayah(self, ayah_id: int) -> CascadeResult:
        result = self.corpus.delete_ayah(ayah_id)
        self._audit(
            DELETE_AYAH, "ayah", ayah_id,
            old_values={**_address(result.ayah), "text": result.ayah.text},
            new_values={
                "translations_deleted": result.translations_deleted,
                "audio_deleted": result.audio_deleted,
            },
        )
        return result

    def import_translations(self, rows: Iterable[ParsedRow], source_id: int, cancel=None) -> ImportResult:
        result = self.exchange.import_translations(rows, source_id, cancel=cancel)
        self._audit(
            IMPORT_TRANSLATIONS, "source", source_id,
            new_values={
                "imported": result.imported_count,
                "errors": result.error_count,
                "cancelled": result.cancelled,
            },
        )
        logger.info("%s imported translations into source %s: %s", self.actor, source_id, result.summary())
        return result
