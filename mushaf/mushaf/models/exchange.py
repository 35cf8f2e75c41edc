"""
Bulk exchange data models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ExportFormat(str, Enum):
    """Output encodings for bulk export."""

    JSON = "json"
    CSV = "csv"


class ExportRow(BaseModel):
    """One ayah of an exported surah, with its translation if any."""

    verse_number: int = Field(..., ge=1)
    text_arabic: str
    translation: Optional[str] = None
    source_name: Optional[str] = None
    language_code: Optional[str] = None


class ImportRow(BaseModel):
    """
    One translation to import.

    Attributes:
        row: Identity of the row in its input (line number or index)
        surah_id: Target surah
        ayah_number: Target ayah within the surah
        translation: Translation text
    """

    row: int
    surah_id: int
    ayah_number: int
    translation: str


class RowError(BaseModel):
    """A row that could not be imported."""

    row: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.message}"


class ImportResult(BaseModel):
    """
    Outcome of a bulk import.

    A mixed outcome is a normal return value, not an exception.
    """

    imported_count: int = 0
    errors: list[RowError] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def summary(self) -> str:
        text = f"{self.imported_count} imported, {self.error_count} failed"
        if self.cancelled:
            text += " (cancelled)"
        return text
