"""
Ayah (verse) data model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from mushaf.models.surah import TOTAL_AYAHS, TOTAL_SURAHS


class Ayah(BaseModel):
    """
    Represents a single ayah (verse) of the Quran as stored in the corpus.

    Attributes:
        id: Surrogate row identifier
        surah_id: Surah number (1-114)
        ayah_number: Ayah number within the surah (1-based)
        number_in_quran: Corpus-wide position (1-6236)
        text: The Arabic text of the ayah
        text_uthmani: Uthmani script text, defaults to ``text``
        juz_number: Juz division (optional)
        hizb_number: Hizb division (optional)
        rub_number: Rub al-hizb division (optional)
    """

    id: int = Field(
        ...,
        description="Surrogate row identifier",
        ge=1,
    )
    surah_id: int = Field(
        ...,
        description="Surah number (1-114)",
        ge=1,
        le=TOTAL_SURAHS,
    )
    ayah_number: int = Field(
        ...,
        description="Ayah number within the surah (1-based)",
        ge=1,
    )
    number_in_quran: int = Field(
        ...,
        description="Corpus-wide position (1-6236)",
        ge=1,
        le=TOTAL_AYAHS,
    )
    text: str = Field(
        ...,
        description="The Arabic text of the ayah",
        min_length=1,
    )
    text_uthmani: Optional[str] = Field(
        default=None,
        description="Uthmani script text (defaults to text)",
    )
    juz_number: Optional[int] = Field(default=None, ge=1, le=30)
    hizb_number: Optional[int] = Field(default=None, ge=1, le=60)
    rub_number: Optional[int] = Field(default=None, ge=1, le=240)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def default_uthmani_text(self) -> "Ayah":
        """Fall back to the primary text when no Uthmani text is given."""
        if not self.text_uthmani:
            self.text_uthmani = self.text
        return self

    @property
    def address(self) -> tuple[int, int]:
        """(surah_id, ayah_number) pair."""
        return (self.surah_id, self.ayah_number)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "surah_id": 1,
                    "ayah_number": 1,
                    "number_in_quran": 1,
                    "text": "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ",
                    "juz_number": 1,
                }
            ]
        }
    }

    def __str__(self) -> str:
        return f"Ayah({self.surah_id}:{self.ayah_number})"

    def __repr__(self) -> str:
        return (
            f"Ayah(id={self.id}, surah_id={self.surah_id}, "
            f"ayah_number={self.ayah_number}, number_in_quran={self.number_in_quran})"
        )


class AyahWithAudio(Ayah):
    """An ayah annotated with its recitation availability."""

    has_audio: bool = False
    audio_count: int = Field(default=0, ge=0)


class SurahWithAyahs(BaseModel):
    """A surah together with its ordered ayahs."""

    id: int
    name_arabic: str
    name_english: str
    name_translation: str
    revelation_type: str
    total_ayahs: int
    bismillah_pre: bool
    ayahs: list[AyahWithAudio] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"Surah {self.id}: {self.name_arabic} ({len(self.ayahs)} ayahs)"
