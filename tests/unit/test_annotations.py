"""
Unit tests for the annotation store.
"""

import io
import threading

import pytest

from mushaf.config import configure
from mushaf.exceptions import ConflictError, ForeignKeyError, NotFoundError, ValidationError
from mushaf.models import SourceStatus


class TestSources:
    """Test languages, sources and reciters."""

    def test_create_source(self, annotations, source_x):
        assert source_x.name == "X"
        assert source_x.language_code == "en"
        assert source_x.is_active

    def test_unknown_language(self, annotations):
        with pytest.raises(ForeignKeyError) as exc:
            annotations.create_source("Y", "zz")
        assert exc.value.reference == "language"

    def test_duplicate_source_name(self, annotations, source_x):
        with pytest.raises(ConflictError):
            annotations.create_source("X", "en")

    def test_deactivate_source(self, annotations, source_x):
        """Test that deactivated sources drop out of the active listing only."""
        annotations.set_source_status(source_x.id, SourceStatus.DEACTIVATED)
        assert annotations.get_sources() == []
        assert [s.id for s in annotations.get_sources(active_only=False)] == [source_x.id]

    def test_language_lookup(self, annotations, english):
        assert annotations.get_language_by_code("en").id == english.id
        with pytest.raises(NotFoundError):
            annotations.get_language_by_code("fr")

    def test_reciters(self, annotations, reciter):
        assert [r.name for r in annotations.get_reciters()] == ["Mishary Alafasy"]
        annotations.set_reciter_status(reciter.id, "deactivated")
        assert annotations.get_reciters() == []


class TestUpsertTranslation:
    """Test translation upserts."""

    def test_fatiha_scenario(self, annotations, fatiha, source_x):
        """Test that an approved translation is read back exactly once."""
        annotations.upsert_translation(fatiha[0].id, source_x.id, "In the name of God", None, True)
        translations = annotations.get_translations_for_ayah(fatiha[0].id)
        assert len(translations) == 1
        assert translations[0].text == "In the name of God"
        assert translations[0].is_approved is True
        assert translations[0].approved_at is not None

    def test_idempotent(self, annotations, fatiha, source_x):
        """Test that repeating an upsert leaves a single row with the same text."""
        first = annotations.upsert_translation(fatiha[0].id, source_x.id, "text", None, False)
        second = annotations.upsert_translation(fatiha[0].id, source_x.id, "text", None, False)
        assert first.id == second.id
        count = annotations.db.fetch_one(
            "SELECT COUNT(*) AS c FROM translations WHERE ayah_id = ? AND source_id = ?",
            (fatiha[0].id, source_x.id),
        )["c"]
        assert count == 1
        assert second.text == "text"

    def test_update_in_place(self, annotations, fatiha, source_x):
        first = annotations.upsert_translation(fatiha[0].id, source_x.id, "old")
        second = annotations.upsert_translation(fatiha[0].id, source_x.id, "new", footnotes="fn")
        assert second.id == first.id
        assert (second.text, second.footnotes) == ("new", "fn")

    def test_approval_kept_and_cleared(self, annotations, fatiha, source_x):
        """Test that re-approving keeps the original approver and unapproving clears it."""
        annotations.upsert_translation(fatiha[0].id, source_x.id, "a", approved=True, approved_by=7)
        again = annotations.upsert_translation(fatiha[0].id, source_x.id, "b", approved=True, approved_by=8)
        assert again.approved_by == 7
        cleared = annotations.upsert_translation(fatiha[0].id, source_x.id, "c", approved=False)
        assert cleared.is_approved is False
        assert cleared.approved_by is None
        assert cleared.approved_at is None

    @pytest.mark.parametrize("text", ["", "  ", None])
    def test_empty_text(self, annotations, fatiha, source_x, text):
        with pytest.raises(ValidationError):
            annotations.upsert_translation(fatiha[0].id, source_x.id, text)

    def test_unknown_ayah(self, annotations, source_x):
        with pytest.raises(ForeignKeyError) as exc:
            annotations.upsert_translation(999, source_x.id, "text")
        assert exc.value.reference == "ayah"

    def test_unknown_source(self, annotations, fatiha):
        with pytest.raises(ForeignKeyError) as exc:
            annotations.upsert_translation(fatiha[0].id, 999, "text")
        assert exc.value.reference == "source"

    def test_by_source_and_surah(self, annotations, fatiha, baqarah_opening, source_x):
        for ayah in fatiha[:3] + baqarah_opening[:1]:
            annotations.upsert_translation(ayah.id, source_x.id, f"t{ayah.number_in_quran}")
        rows = annotations.get_by_source_and_surah(1, source_x.id)
        assert [r.ayah_number for r in rows] == [1, 2, 3]
        assert rows[0].source_name == "X"


class TestSearch:
    """Test translation search."""

    @pytest.fixture
    def translated(self, annotations, fatiha, source_x):
        annotations.upsert_translation(fatiha[0].id, source_x.id, "In the name of God, the Merciful")
        annotations.upsert_translation(fatiha[2].id, source_x.id, "The Most Merciful", approved=True)
        annotations.upsert_translation(fatiha[3].id, source_x.id, "Master of the Day of Judgment")
        return fatiha

    def test_short_query_rejected(self, annotations, translated):
        """Test that two-character queries fail and three-character queries run."""
        with pytest.raises(ValidationError):
            annotations.search("ab")
        assert annotations.search("abc") == []

    def test_whitespace_does_not_count(self, annotations, translated):
        with pytest.raises(ValidationError):
            annotations.search("  ab  ")

    def test_results_in_corpus_order(self, annotations, translated):
        results = annotations.search("Merciful")
        assert [r.number_in_quran for r in results] == [1, 3]

    def test_case_insensitive(self, annotations, translated):
        assert len(annotations.search("merciful")) == 2

    def test_filters(self, annotations, translated, source_x):
        assert len(annotations.search("Merciful", approved_only=True)) == 1
        assert len(annotations.search("Merciful", source_id=source_x.id, surah_id=1)) == 2
        assert annotations.search("Merciful", source_id=999) == []

    def test_wildcards_literal(self, annotations, translated):
        assert annotations.search("%%%") == []

    def test_limit(self, annotations, translated):
        assert len(annotations.search("the", limit=1)) == 1
        with pytest.raises(ValidationError):
            annotations.search("the", limit=0)

    def test_limit_capped(self, annotations, translated):
        configure(max_search_limit=2)
        assert len(annotations.search("the", limit=100)) == 2


class TestAudio:
    """Test recitation upserts and deletion."""

    def test_upsert_audio(self, annotations, fatiha, reciter):
        audio = annotations.upsert_audio(fatiha[0].id, reciter.id, "/a/1.mp3", "1.mp3", 1024, "MP3")
        assert audio.format == "mp3"
        assert audio.reciter_name == "Mishary Alafasy"
        assert [a.id for a in annotations.get_audio_for_ayah(fatiha[0].id)] == [audio.id]

    def test_upsert_replaces_and_discards_old_file(self, annotations, file_storage, fatiha, reciter):
        """Test that a replacement keeps one row and removes the superseded file."""
        old = file_storage.save(io.BytesIO(b"old"), "old.mp3")
        new = file_storage.save(io.BytesIO(b"new"), "new.mp3")
        first = annotations.upsert_audio(fatiha[0].id, reciter.id, old.path, old.file_name)
        second = annotations.upsert_audio(fatiha[0].id, reciter.id, new.path, new.file_name)
        assert first.id == second.id
        assert second.file_path == new.path
        assert not file_storage.exists(old.path)
        assert file_storage.exists(new.path)

    def test_concurrent_replacements_leave_one_file(self, annotations, db, file_storage, fatiha, reciter):
        """Test that racing uploads for one pair discard every superseded file."""
        ayah_id = fatiha[0].id
        errors = []

        def worker(n):
            try:
                for i in range(5):
                    stored = file_storage.save(io.BytesIO(b"audio"), f"w{n}-{i}.mp3")
                    annotations.upsert_audio(ayah_id, reciter.id, stored.path, stored.file_name)
            except Exception as e:
                errors.append(e)
            finally:
                db.close_connection()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        current = annotations.get_audio_for_ayah(ayah_id)
        assert len(current) == 1
        remaining = file_storage.base_dir.rglob("*.mp3")
        assert [str(p) for p in remaining] == [current[0].file_path]

    def test_unknown_reciter(self, annotations, fatiha):
        with pytest.raises(ForeignKeyError) as exc:
            annotations.upsert_audio(fatiha[0].id, 999, "/a.mp3", "a.mp3")
        assert exc.value.reference == "reciter"
        assert exc.value.reference_id == 999

    def test_unknown_ayah(self, annotations, reciter):
        with pytest.raises(ForeignKeyError) as exc:
            annotations.upsert_audio(999, reciter.id, "/a.mp3", "a.mp3")
        assert exc.value.reference == "ayah"

    def test_delete_audio(self, annotations, file_storage, fatiha, reciter):
        stored = file_storage.save(io.BytesIO(b"ID3"), "a.mp3")
        audio = annotations.upsert_audio(fatiha[0].id, reciter.id, stored.path, stored.file_name)
        removed = annotations.delete_audio(audio.id)
        assert removed.id == audio.id
        assert not file_storage.exists(stored.path)
        with pytest.raises(NotFoundError):
            annotations.get_audio(audio.id)

    def test_delete_audio_missing_file(self, annotations, fatiha, reciter):
        """Test that a file already gone does not fail the deletion."""
        audio = annotations.upsert_audio(fatiha[0].id, reciter.id, "/nonexistent/a.mp3", "a.mp3")
        annotations.delete_audio(audio.id)
        assert annotations.get_audio_for_ayah(fatiha[0].id) == []

    def test_delete_audio_file_error_logged(self, annotations, fatiha, reciter, monkeypatch):
        """Test that a storage failure is logged, not raised."""
        def broken_delete(path):
            raise PermissionError("read-only")

        monkeypatch.setattr(annotations.file_storage, "delete", broken_delete)
        audio = annotations.upsert_audio(fatiha[0].id, reciter.id, "/a.mp3", "a.mp3")
        annotations.delete_audio(audio.id)
        assert annotations.get_audio_for_ayah(fatiha[0].id) == []

    def test_delete_missing(self, annotations):
        with pytest.raises(NotFoundError):
            annotations.delete_audio(999)

    def test_audio_status_for_surah(self, annotations, fatiha, reciter):
        second = annotations.create_reciter("Abdul Basit")
        annotations.upsert_audio(fatiha[1].id, reciter.id, "/a.mp3", "a.mp3")
        annotations.upsert_audio(fatiha[1].id, second.id, "/b.mp3", "b.mp3")
        status = annotations.get_audio_status_for_surah(1)
        assert len(status) == 7
        assert (status[1].has_audio, status[1].audio_count) == (True, 2)
        assert status[1].latest_upload is not None
        assert (status[0].has_audio, status[0].audio_count) == (False, 0)


class TestStats:
    def test_stats(self, annotations, fatiha, source_x, reciter):
        annotations.upsert_translation(fatiha[0].id, source_x.id, "a", approved=True)
        annotations.upsert_translation(fatiha[1].id, source_x.id, "b")
        annotations.upsert_audio(fatiha[0].id, reciter.id, "/a.mp3", "a.mp3", file_size=10)
        stats = annotations.get_stats()
        assert stats.total_translations == 2
        assert stats.approved_translations == 1
        assert stats.translated_ayahs == 2
        assert stats.total_audio_files == 1
        assert stats.total_file_size == 10
