"""
Annotation data models: translations and audio recitations.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SourceStatus(str, Enum):
    """Lifecycle status of a translation source or reciter."""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class TextDirection(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


class Language(BaseModel):
    """A language that translations can be written in."""

    id: int = Field(..., ge=1)
    code: str = Field(..., min_length=2, max_length=8)
    name: str = Field(..., min_length=1)
    direction: TextDirection = TextDirection.LTR

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class TranslationSource(BaseModel):
    """
    Provenance of translated text.

    Attributes:
        id: Row identifier
        name: Globally unique source name
        author: Translator or publisher
        language_id: Owning language
        language_code: Code of the owning language (joined, read-only)
        status: Active or deactivated
    """

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    author: Optional[str] = None
    language_id: int = Field(..., ge=1)
    language_code: Optional[str] = None
    description: Optional[str] = None
    status: SourceStatus = SourceStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == SourceStatus.ACTIVE

    def __str__(self) -> str:
        return f"TranslationSource({self.name})"


class Translation(BaseModel):
    """
    Translated text attached to exactly one (ayah, source) pair.

    Attributes:
        id: Row identifier
        ayah_id: Annotated ayah
        source_id: Translation source
        text: Translation body (never empty)
        footnotes: Optional footnote text
        is_approved: Whether an editor approved the text
        approved_by: Actor who approved it
        approved_at: When it was approved
    """

    id: int = Field(..., ge=1)
    ayah_id: int = Field(..., ge=1)
    source_id: int = Field(..., ge=1)
    text: str = Field(..., min_length=1)
    footnotes: Optional[str] = None
    is_approved: bool = False
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined, read-only context
    source_name: Optional[str] = None
    language_code: Optional[str] = None
    surah_id: Optional[int] = None
    ayah_number: Optional[int] = None
    number_in_quran: Optional[int] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "ayah_id": 1,
                    "source_id": 1,
                    "text": "In the name of God, the Most Gracious, the Most Merciful",
                    "is_approved": True,
                }
            ]
        }
    }

    def __str__(self) -> str:
        return f"Translation(ayah={self.ayah_id}, source={self.source_id})"


class Reciter(BaseModel):
    """A named provenance of audio recitations."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    name_arabic: Optional[str] = None
    style: Optional[str] = None
    country: Optional[str] = None
    status: SourceStatus = SourceStatus.ACTIVE

    def __str__(self) -> str:
        return f"Reciter({self.name})"


class AudioRecitation(BaseModel):
    """
    Audio file reference attached to exactly one (ayah, reciter) pair.
    """

    id: int = Field(..., ge=1)
    ayah_id: int = Field(..., ge=1)
    reciter_id: int = Field(..., ge=1)
    file_path: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_size: Optional[int] = Field(default=None, ge=0)
    format: str = "mp3"
    is_active: bool = True
    uploaded_by: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reciter_name: Optional[str] = None

    @field_validator("format")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Store formats lowercase and without a leading dot."""
        return v.lower().lstrip(".")

    def __str__(self) -> str:
        return f"AudioRecitation(ayah={self.ayah_id}, reciter={self.reciter_id})"


class AudioStatus(BaseModel):
    """Recitation availability for one ayah of a surah."""

    ayah_id: int
    ayah_number: int
    has_audio: bool
    audio_count: int = Field(default=0, ge=0)
    latest_upload: Optional[datetime] = None
