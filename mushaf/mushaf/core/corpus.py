"""
Corpus storage: surahs and ayahs.

This is the only module that creates, edits or deletes ayah rows (positional
changes go through ``mushaf.core.indexing``). It guarantees that the
(surah, ayah_number) and number_in_quran uniqueness invariants hold after
every commit.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from mushaf.core.annotations import AnnotationStore
from mushaf.data import (
    TOTAL_AYAHS,
    TOTAL_SURAHS,
    CanonicalAyah,
    canonical_number_in_quran,
    validate_surah_id,
)
from mushaf.exceptions import ConflictError, NotFoundError, ValidationError
from mushaf.models import Ayah, AyahWithAudio, Surah, SurahWithAyahs
from mushaf.storage.database import Database

logger = logging.getLogger(__name__)

PROVISIONAL_TEXT = "[provisional]"


@dataclass
class CascadeResult:
    """What an ayah deletion removed."""

    ayah: Ayah
    translations_deleted: int = 0
    audio_deleted: int = 0


@dataclass
class OrderingViolation:
    """Two ayahs, adjacent in canonical order, whose global positions do not increase."""

    ayah_id: int
    surah_id: int
    ayah_number: int
    number_in_quran: int
    previous_ayah_id: int
    previous_number_in_quran: int


@dataclass
class IntegrityReport:
    """Result of a corpus-wide consistency check."""

    surah_count: int = 0
    ayah_count: int = 0
    count_mismatches: list[tuple[int, int, int]] = field(default_factory=list)
    ordering_violations: list[OrderingViolation] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.surah_count == TOTAL_SURAHS and self.ayah_count == TOTAL_AYAHS

    @property
    def is_consistent(self) -> bool:
        return self.is_complete and not self.count_mismatches and not self.ordering_violations


@dataclass
class CorpusStats:
    total_surahs: int = TOTAL_SURAHS
    total_ayahs: int = TOTAL_AYAHS
    stored_surahs: int = 0
    stored_ayahs: int = 0
    uploaded_audio: int = 0


def find_ordering_violations(db: Database) -> list[OrderingViolation]:
    """All places where number_in_quran fails to increase in (surah, ayah) order."""
    rows = db.fetch_all(
        """
        SELECT * FROM (
          SELECT
            id, surah_id, ayah_number, number_in_quran,
            LAG(id) OVER w AS previous_ayah_id,
            LAG(number_in_quran) OVER w AS previous_number_in_quran
          FROM ayahs
          WINDOW w AS (ORDER BY surah_id, ayah_number)
        )
        WHERE previous_number_in_quran IS NOT NULL
          AND previous_number_in_quran >= number_in_quran
        ORDER BY surah_id, ayah_number
        """
    )
    return [
        OrderingViolation(
            ayah_id=r["id"],
            surah_id=r["surah_id"],
            ayah_number=r["ayah_number"],
            number_in_quran=r["number_in_quran"],
            previous_ayah_id=r["previous_ayah_id"],
            previous_number_in_quran=r["previous_number_in_quran"],
        )
        for r in rows
    ]


class CorpusStore:
    """
    Surah and ayah access with positional integrity.

    Args:
        db: Storage handle
        annotations: Store used for recitation lookups and file cleanup;
            one is created on ``db`` when omitted
    """

    def __init__(self, db: Database, annotations: Optional[AnnotationStore] = None):
        self.db = db
        self.annotations = annotations or AnnotationStore(db)

    # ------------------------------------------------------------------
    # Surahs
    # ------------------------------------------------------------------

    def bootstrap_surahs(self) -> int:
        """Insert or refresh the metadata rows of all 114 surahs."""
        params = []
        for surah_id in range(1, TOTAL_SURAHS + 1):
            s = Surah.from_id(surah_id)
            params.append((
                s.id, s.name_arabic, s.name_english, s.name_translation,
                s.revelation_type.value, s.total_ayahs, int(s.bismillah_pre),
            ))
        with self.db.transaction():
            self.db.execute_many(
                """
                INSERT INTO surahs
                  (id, name_arabic, name_english, name_translation, revelation_type, total_ayahs, bismillah_pre)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                  name_arabic = excluded.name_arabic,
                  name_english = excluded.name_english,
                  name_translation = excluded.name_translation,
                  revelation_type = excluded.revelation_type,
                  total_ayahs = excluded.total_ayahs,
                  bismillah_pre = excluded.bismillah_pre,
                  updated_at = CURRENT_TIMESTAMP
                """,
                params,
            )
        logger.info("Bootstrapped %s surahs", len(params))
        return len(params)

    def list_surahs(self) -> list[Surah]:
        rows = self.db.fetch_all("SELECT * FROM surahs ORDER BY id")
        return [Surah.model_validate(dict(r)) for r in rows]

    def get_surah(self, surah_id: int) -> Surah:
        """
        Raises:
            ValidationError: surah_id outside 1-114
            NotFoundError: Surah row not present
        """
        validate_surah_id(surah_id)
        row = self.db.fetch_one("SELECT * FROM surahs WHERE id = ?", (surah_id,))
        if row is None:
            raise NotFoundError(f"Surah {surah_id} not found", entity="surah", entity_id=surah_id)
        return Surah.model_validate(dict(row))

    def get_surah_with_ayahs(self, surah_id: int) -> SurahWithAyahs:
        """
        A surah with its ayahs in order, each flagged with recitation availability.

        Recitation availability comes from one aggregated query for the whole
        surah rather than one lookup per ayah.
        """
        surah = self.get_surah(surah_id)
        ayahs = self.list_ayahs(surah_id)
        status = {s.ayah_id: s for s in self.annotations.get_audio_status_for_surah(surah_id)}

        annotated = []
        for ayah in ayahs:
            entry = status.get(ayah.id)
            annotated.append(AyahWithAudio(
                **ayah.model_dump(),
                has_audio=entry.has_audio if entry else False,
                audio_count=entry.audio_count if entry else 0,
            ))
        return SurahWithAyahs(**surah.model_dump(mode="json"), ayahs=annotated)

    # ------------------------------------------------------------------
    # Ayahs
    # ------------------------------------------------------------------

    def list_ayahs(self, surah_id: int) -> list[Ayah]:
        validate_surah_id(surah_id)
        rows = self.db.fetch_all(
            "SELECT * FROM ayahs WHERE surah_id = ? ORDER BY ayah_number",
            (surah_id,),
        )
        return [Ayah.model_validate(dict(r)) for r in rows]

    def get_ayah(self, ayah_id: int) -> Ayah:
        row = self.db.fetch_one("SELECT * FROM ayahs WHERE id = ?", (ayah_id,))
        if row is None:
            raise NotFoundError(f"Ayah {ayah_id} not found", entity="ayah", entity_id=ayah_id)
        return Ayah.model_validate(dict(row))

    def get_ayah_by_address(self, surah_id: int, ayah_number: int) -> Ayah:
        validate_surah_id(surah_id)
        if ayah_number < 1:
            raise ValidationError(f"Ayah number must be greater than 0, got {ayah_number}")
        row = self.db.fetch_one(
            "SELECT * FROM ayahs WHERE surah_id = ? AND ayah_number = ?",
            (surah_id, ayah_number),
        )
        if row is None:
            raise NotFoundError(f"Ayah not found: Surah {surah_id}, Verse {ayah_number}", entity="ayah")
        return Ayah.model_validate(dict(row))

    def find_by_number_in_quran(self, number_in_quran: int) -> Optional[Ayah]:
        row = self.db.fetch_one("SELECT * FROM ayahs WHERE number_in_quran = ?", (number_in_quran,))
        return Ayah.model_validate(dict(row)) if row else None

    def update_ayah_text(self, ayah_id: int, text: str, text_uthmani: Optional[str] = None) -> Ayah:
        """
        Replace an ayah's text. The Uthmani text defaults to ``text``.

        Raises:
            ValidationError: Empty text
            NotFoundError: No such ayah
        """
        if text is None or not text.strip():
            raise ValidationError("Arabic text is required")
        cursor = self.db.execute_query(
            "UPDATE ayahs SET text = ?, text_uthmani = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (text, text_uthmani or text, ayah_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Ayah {ayah_id} not found", entity="ayah", entity_id=ayah_id)
        logger.info("Ayah %s text updated", ayah_id)
        return self.get_ayah(ayah_id)

    def provision_ayah(self, surah_id: int, ayah_number: int, text: Optional[str] = None) -> Ayah:
        """
        Make sure an ayah row exists at an address, creating a provisional one if needed.

        Callers opt into this explicitly before attaching an annotation to an
        ayah that may not be loaded yet. The new row gets the exact canonical
        number_in_quran; nothing is approximated.

        Raises:
            ValidationError: Address outside the canonical corpus
            ConflictError: The canonical number_in_quran belongs to another ayah
        """
        try:
            return self.get_ayah_by_address(surah_id, ayah_number)
        except NotFoundError:
            pass

        number_in_quran = canonical_number_in_quran(surah_id, ayah_number)
        self._check_position_free(surah_id, ayah_number, number_in_quran)

        try:
            cursor = self.db.execute_query(
                """
                INSERT INTO ayahs (surah_id, ayah_number, number_in_quran, text, text_uthmani)
                VALUES (?, ?, ?, ?, ?)
                """,
                (surah_id, ayah_number, number_in_quran, text or PROVISIONAL_TEXT, text or PROVISIONAL_TEXT),
            )
        except ConflictError as conflict:
            # Lost a race: either the address or the number was taken meanwhile
            try:
                return self.get_ayah_by_address(surah_id, ayah_number)
            except NotFoundError:
                self._check_position_free(surah_id, ayah_number, number_in_quran)
            raise conflict

        logger.warning("Provisioned placeholder ayah %s:%s (number %s)", surah_id, ayah_number, number_in_quran)
        return self.get_ayah(cursor.lastrowid)

    def _check_position_free(self, surah_id: int, ayah_number: int, number_in_quran: int) -> None:
        occupant = self.find_by_number_in_quran(number_in_quran)
        if occupant is not None:
            raise ConflictError(
                f"Cannot provision {surah_id}:{ayah_number}: number {number_in_quran} "
                f"already belongs to ayah {occupant.surah_id}:{occupant.ayah_number}",
                entity="ayah",
                entity_id=occupant.id,
            )

    def add_ayahs(self, ayahs: Iterable[CanonicalAyah]) -> int:
        """
        Bulk-create ayahs during corpus bootstrap, all or nothing.

        Raises:
            ConflictError: An address or number_in_quran is already taken
        """
        params = [
            (a.surah_id, a.ayah_number, a.number_in_quran, a.text, a.text_uthmani or a.text,
             a.juz_number, a.hizb_number, a.rub_number)
            for a in ayahs
        ]
        if not params:
            return 0
        with self.db.transaction():
            self.db.execute_many(
                """
                INSERT INTO ayahs
                  (surah_id, ayah_number, number_in_quran, text, text_uthmani, juz_number, hizb_number, rub_number)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                params,
            )
        logger.info("Added %s ayahs", len(params))
        return len(params)

    def delete_ayah(self, ayah_id: int) -> CascadeResult:
        """
        Delete an ayah together with every translation and recitation of it.

        The cascade is performed explicitly in one transaction rather than
        left to the storage engine. Recitation files are removed afterwards on
        a best-effort basis.

        Raises:
            NotFoundError: No such ayah
        """
        with self.db.transaction():
            ayah = self.get_ayah(ayah_id)
            paths = [
                r["file_path"]
                for r in self.db.fetch_all("SELECT file_path FROM audio_files WHERE ayah_id = ?", (ayah_id,))
            ]
            translations = self.db.execute_query("DELETE FROM translations WHERE ayah_id = ?", (ayah_id,)).rowcount
            audio = self.db.execute_query("DELETE FROM audio_files WHERE ayah_id = ?", (ayah_id,)).rowcount
            self.db.execute_query("DELETE FROM ayahs WHERE id = ?", (ayah_id,))

        for path in paths:
            self.annotations.discard_file(path)
        logger.info("Deleted ayah %s with %s translations and %s recitations", ayah, translations, audio)
        return CascadeResult(ayah=ayah, translations_deleted=translations, audio_deleted=audio)

    # ------------------------------------------------------------------
    # Integrity and statistics
    # ------------------------------------------------------------------

    def verify_integrity(self) -> IntegrityReport:
        """Compare declared and stored ayah counts and check global ordering."""
        report = IntegrityReport(
            surah_count=self.db.fetch_one("SELECT COUNT(*) AS c FROM surahs")["c"],
            ayah_count=self.db.fetch_one("SELECT COUNT(*) AS c FROM ayahs")["c"],
        )
        rows = self.db.fetch_all(
            """
            SELECT s.id, s.total_ayahs, COUNT(a.id) AS actual
            FROM surahs s
            LEFT JOIN ayahs a ON a.surah_id = s.id
            GROUP BY s.id, s.total_ayahs
            HAVING COUNT(a.id) != s.total_ayahs
            ORDER BY s.id
            """
        )
        report.count_mismatches = [(r["id"], r["total_ayahs"], r["actual"]) for r in rows]
        report.ordering_violations = find_ordering_violations(self.db)

        if report.ordering_violations:
            logger.warning("%s ordering violations in corpus", len(report.ordering_violations))
        return report

    def get_stats(self) -> CorpusStats:
        row = self.db.fetch_one(
            """
            SELECT
              (SELECT COUNT(*) FROM surahs) AS stored_surahs,
              (SELECT COUNT(*) FROM ayahs) AS stored_ayahs,
              (SELECT COUNT(*) FROM audio_files) AS uploaded_audio
            """
        )
        return CorpusStats(**dict(row))
