"""
Canonical corpus metadata and bootstrap loading.

The fixed tables in ``mushaf.models.surah`` describe the canonical corpus.
These helpers answer questions about it and load ayah text from CSV files.
"""

import csv
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from mushaf.exceptions import ValidationError
from mushaf.models.surah import (
    SURAH_AYAH_COUNTS,
    SURAH_NAMES,
    TOTAL_AYAHS,
    TOTAL_SURAHS,
    Surah,
)

__all__ = [
    "TOTAL_AYAHS",
    "TOTAL_SURAHS",
    "validate_surah_id",
    "get_surah_name",
    "get_ayah_count",
    "get_surah_metadata",
    "first_number_in_quran",
    "canonical_number_in_quran",
    "approximate_number_in_quran",
    "CanonicalAyah",
    "load_ayahs_csv",
]


def validate_surah_id(surah_id: int) -> int:
    """Raise ValidationError unless surah_id is within 1-114."""
    if not isinstance(surah_id, int) or isinstance(surah_id, bool) or not 1 <= surah_id <= TOTAL_SURAHS:
        raise ValidationError(f"Surah ID must be between 1 and {TOTAL_SURAHS}, got {surah_id!r}")
    return surah_id


def get_surah_name(surah_id: int) -> str:
    """Arabic name of a surah."""
    return SURAH_NAMES[validate_surah_id(surah_id)]


def get_ayah_count(surah_id: int) -> int:
    """Canonical number of ayahs in a surah."""
    return SURAH_AYAH_COUNTS[validate_surah_id(surah_id)]


def get_surah_metadata(surah_id: int) -> Surah:
    """Full canonical metadata for a surah."""
    return Surah.from_id(validate_surah_id(surah_id))


@lru_cache(maxsize=1)
def _surah_offsets() -> dict[int, int]:
    offsets = {}
    running = 0
    for surah_id in range(1, TOTAL_SURAHS + 1):
        offsets[surah_id] = running
        running += SURAH_AYAH_COUNTS[surah_id]
    return offsets


def first_number_in_quran(surah_id: int) -> int:
    """Corpus-wide position of the first ayah of a surah."""
    return _surah_offsets()[validate_surah_id(surah_id)] + 1


def canonical_number_in_quran(surah_id: int, ayah_number: int) -> int:
    """
    Exact corpus-wide position of an ayah, derived from the canonical counts.

    Raises:
        ValidationError: If the address lies outside the canonical corpus
    """
    count = get_ayah_count(surah_id)
    if ayah_number < 1 or ayah_number > count:
        raise ValidationError(
            f"Ayah {surah_id}:{ayah_number} does not exist; surah {surah_id} has {count} ayahs"
        )
    return _surah_offsets()[surah_id] + ayah_number


def approximate_number_in_quran(surah_id: int, ayah_number: int) -> int:
    """
    Legacy placeholder heuristic ``(surah_id - 1) * 100 + ayah_number``.

    Not a real corpus position; kept only to recognise rows created by it.
    """
    return (surah_id - 1) * 100 + ayah_number


@dataclass
class CanonicalAyah:
    """Ayah row parsed for corpus bootstrap, ready for ``CorpusStore.add_ayahs``."""

    surah_id: int
    ayah_number: int
    number_in_quran: int
    text: str
    text_uthmani: str | None = None
    juz_number: int | None = None
    hizb_number: int | None = None
    rub_number: int | None = None


def _optional_int(value: str | None) -> int | None:
    value = (value or "").strip()
    return int(value) if value else None


def load_ayahs_csv(path: str | Path) -> list[CanonicalAyah]:
    """
    Load ayah text from a CSV file for corpus bootstrap.

    Required columns: ``surah_id``, ``ayah_number``, ``text``.
    Optional columns: ``number_in_quran`` (computed from canonical counts
    when missing), ``text_uthmani``, ``juz_number``, ``hizb_number``,
    ``rub_number``.

    Args:
        path: CSV file path (UTF-8, header row required)

    Returns:
        Rows in file order

    Raises:
        ValidationError: On a missing column or an invalid row
    """
    path = Path(path)
    rows: list[CanonicalAyah] = []

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        missing = {"surah_id", "ayah_number", "text"} - set(reader.fieldnames or [])
        if missing:
            raise ValidationError(f"{path.name}: missing columns {sorted(missing)}")

        for line_no, record in enumerate(reader, start=2):
            try:
                surah_id = int(record["surah_id"])
                ayah_number = int(record["ayah_number"])
                number_in_quran = _optional_int(record.get("number_in_quran"))
            except (TypeError, ValueError) as e:
                raise ValidationError(f"{path.name}:{line_no}: invalid number ({e})") from e

            text = (record.get("text") or "").strip()
            if not text:
                raise ValidationError(f"{path.name}:{line_no}: empty ayah text")

            if number_in_quran is None:
                number_in_quran = canonical_number_in_quran(surah_id, ayah_number)

            rows.append(CanonicalAyah(
                surah_id=surah_id,
                ayah_number=ayah_number,
                number_in_quran=number_in_quran,
                text=text,
                text_uthmani=(record.get("text_uthmani") or "").strip() or None,
                juz_number=_optional_int(record.get("juz_number")),
                hizb_number=_optional_int(record.get("hizb_number")),
                rub_number=_optional_int(record.get("rub_number")),
            ))

    return rows
