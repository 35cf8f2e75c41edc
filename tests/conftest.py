"""
Shared fixtures and test configuration for Mushaf tests.
"""

import pytest

from mushaf.config import configure
from mushaf.core import AnnotationStore, CorpusStore
from mushaf.data import CanonicalAyah
from mushaf.storage import Database, LocalFileStorage

FATIHA_TEXT = [
    "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ",
    "الْحَمْدُ لِلَّهِ رَبِّ الْعَالَمِينَ",
    "الرَّحْمَٰنِ الرَّحِيمِ",
    "مَالِكِ يَوْمِ الدِّينِ",
    "إِيَّاكَ نَعْبُدُ وَإِيَّاكَ نَسْتَعِينُ",
    "اهْدِنَا الصِّرَاطَ الْمُسْتَقِيمَ",
    "صِرَاطَ الَّذِينَ أَنْعَمْتَ عَلَيْهِمْ غَيْرِ الْمَغْضُوبِ عَلَيْهِمْ وَلَا الضَّالِّينَ",
]

BAQARAH_OPENING_TEXT = [
    "الم",
    "ذَٰلِكَ الْكِتَابُ لَا رَيْبَ فِيهِ هُدًى لِلْمُتَّقِينَ",
    "الَّذِينَ يُؤْمِنُونَ بِالْغَيْبِ وَيُقِيمُونَ الصَّلَاةَ وَمِمَّا رَزَقْنَاهُمْ يُنْفِقُونَ",
]


@pytest.fixture(autouse=True)
def settings(tmp_path):
    """Point default settings at a temporary directory for every test."""
    s = configure(database_path=tmp_path / "quran_admin.sqlite", audio_dir=tmp_path / "audio")
    yield s
    configure()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with the schema applied."""
    database = Database(tmp_path / "quran_admin.sqlite")
    yield database
    database.close()


@pytest.fixture
def file_storage(tmp_path):
    return LocalFileStorage(tmp_path / "audio")


@pytest.fixture
def annotations(db, file_storage):
    return AnnotationStore(db, file_storage)


@pytest.fixture
def corpus(db, annotations):
    """Corpus store with all 114 surah rows present."""
    store = CorpusStore(db, annotations)
    store.bootstrap_surahs()
    return store


@pytest.fixture
def fatiha(corpus):
    """The 7 ayahs of Al-Fatiha at their canonical positions 1-7."""
    corpus.add_ayahs(
        CanonicalAyah(surah_id=1, ayah_number=i, number_in_quran=i, text=text, juz_number=1)
        for i, text in enumerate(FATIHA_TEXT, start=1)
    )
    return corpus.list_ayahs(1)


@pytest.fixture
def baqarah_opening(corpus):
    """Al-Baqarah 1-3 at their canonical positions 8-10."""
    corpus.add_ayahs(
        CanonicalAyah(surah_id=2, ayah_number=i, number_in_quran=7 + i, text=text, juz_number=1)
        for i, text in enumerate(BAQARAH_OPENING_TEXT, start=1)
    )
    return corpus.list_ayahs(2)


@pytest.fixture
def english(annotations):
    return annotations.create_language("en", "English")


@pytest.fixture
def source_x(annotations, english):
    """Translation source "X" for English."""
    return annotations.create_source("X", "en", author="Test Author")


@pytest.fixture
def reciter(annotations):
    return annotations.create_reciter("Mishary Alafasy", name_arabic="مشاري العفاسي", style="murattal")
