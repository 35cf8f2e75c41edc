"""
Bulk import and export of translations.

Export produces one row per ayah of a surah, translated or not. Import
tolerates bad rows: each row is resolved and upserted on its own, failures are
collected into the result and the batch always runs to completion unless the
caller cancels it.
"""

import csv
import io
import json
import logging
from typing import Any, Iterable, Iterator, Optional, Protocol, Union

from mushaf.config import get_settings
from mushaf.core.annotations import AnnotationStore
from mushaf.core.corpus import CorpusStore
from mushaf.data import validate_surah_id
from mushaf.exceptions import ForeignKeyError, NotFoundError, ValidationError
from mushaf.models import ExportFormat, ExportRow, ImportResult, ImportRow, RowError
from mushaf.storage.database import Database

logger = logging.getLogger(__name__)

SQLITE_MAX_INTEGER = 2**63 - 1

CSV_HEADER = ["Verse Number", "Arabic Text", "Translation", "Source", "Language"]

ParsedRow = Union[ImportRow, RowError]


class CancelToken(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


def _parse_int(value: Any, what: str) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {what}: {value!r}") from None
    if not 1 <= number <= SQLITE_MAX_INTEGER:
        raise ValidationError(f"Invalid {what}: {value!r} is out of range")
    return number


class BulkExchange:
    """
    Translation import and export for whole surahs.

    Args:
        db: Storage handle
        corpus: Used to resolve (surah, ayah) addresses
        annotations: Used to upsert translations
    """

    def __init__(
        self,
        db: Database,
        corpus: Optional[CorpusStore] = None,
        annotations: Optional[AnnotationStore] = None,
    ):
        self.db = db
        self.annotations = annotations or (corpus.annotations if corpus else AnnotationStore(db))
        self.corpus = corpus or CorpusStore(db, self.annotations)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def iter_export_rows(self, surah_id: int, source_id: Optional[int] = None) -> Iterator[ExportRow]:
        """
        Ayahs of a surah in order, each with its translation when there is one.

        With ``source_id``, only that source's translations are joined; ayahs
        it does not cover still appear with empty translation fields.
        """
        validate_surah_id(surah_id)
        join_source = "AND t.source_id = ?" if source_id is not None else ""
        params: list[Any] = [source_id] if source_id is not None else []
        params.append(surah_id)

        rows = self.db.fetch_all(
            f"""
            SELECT
              a.ayah_number AS verse_number,
              a.text AS text_arabic,
              t.text AS translation,
              ts.name AS source_name,
              l.code AS language_code
            FROM ayahs a
            LEFT JOIN translations t ON a.id = t.ayah_id {join_source}
            LEFT JOIN translation_sources ts ON t.source_id = ts.id
            LEFT JOIN languages l ON ts.language_id = l.id
            WHERE a.surah_id = ?
            ORDER BY a.ayah_number, ts.name
            """,
            params,
        )
        for r in rows:
            yield ExportRow.model_validate(dict(r))

    def export_surah_translations(
        self,
        surah_id: int,
        source_id: Optional[int] = None,
        format: ExportFormat | str = ExportFormat.JSON,
    ) -> str:
        """
        Export a surah's translations as JSON or CSV text.

        JSON is ``{"surah_number": n, "translations": [...]}``. CSV has a
        header row and quotes any field that contains the delimiter.

        Raises:
            ValidationError: Bad surah id or format
        """
        try:
            format = ExportFormat(format)
        except ValueError:
            raise ValidationError(f"Unsupported export format: {format!r}") from None

        rows = list(self.iter_export_rows(surah_id, source_id))
        if format is ExportFormat.JSON:
            content = json.dumps(
                {"surah_number": surah_id, "translations": [r.model_dump() for r in rows]},
                ensure_ascii=False,
                indent=2,
            )
        else:
            buffer = io.StringIO()
            writer = csv.writer(buffer, delimiter=get_settings().csv_delimiter, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            for r in rows:
                writer.writerow([
                    r.verse_number,
                    r.text_arabic,
                    r.translation or "",
                    r.source_name or "",
                    r.language_code or "",
                ])
            content = buffer.getvalue()

        logger.info("Exported %s rows for surah %s as %s", len(rows), surah_id, format.value)
        return content

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse_csv(self, content: str, default_surah_id: Optional[int] = None) -> Iterator[ParsedRow]:
        """
        Parse delimited import text.

        Rows are ``surah, ayah, translation``. A row with only two fields is
        read as ``ayah, translation`` within ``default_surah_id``. A first row
        whose leading field is not a number is treated as a header and
        skipped. Row identity is the line number.
        """
        reader = csv.reader(io.StringIO(content), delimiter=get_settings().csv_delimiter)
        first = True
        for fields in reader:
            line = reader.line_num
            fields = [f.strip() for f in fields]
            if not any(fields):
                continue
            if first:
                first = False
                try:
                    int(fields[0])
                except ValueError:
                    logger.debug("Skipping header row: %s", fields)
                    continue

            try:
                if len(fields) >= 3:
                    surah_id = _parse_int(fields[0], "surah number")
                    ayah_number = _parse_int(fields[1], "ayah number")
                    translation = fields[2]
                elif len(fields) == 2 and default_surah_id is not None:
                    surah_id = default_surah_id
                    ayah_number = _parse_int(fields[0], "ayah number")
                    translation = fields[1]
                elif len(fields) == 2:
                    raise ValidationError("Surah number missing and no default surah given")
                else:
                    raise ValidationError(f"Expected at least 2 fields, got {len(fields)}")
            except ValidationError as e:
                yield RowError(row=line, message=str(e))
                continue

            yield ImportRow(row=line, surah_id=surah_id, ayah_number=ayah_number, translation=translation)

    def parse_json(self, content: str, default_surah_id: Optional[int] = None) -> Iterator[ParsedRow]:
        """
        Parse JSON import text.

        Accepts a list of objects or ``{"surah_number": n, "translations": [...]}``
        as produced by export. Each object needs ``translation`` and either
        ``ayah_number`` or ``verse_number``; ``surah_id`` falls back to the
        document's ``surah_number`` and then to ``default_surah_id``. Row
        identity is the 1-based position in the list.

        Raises:
            ValidationError: The document itself is not valid JSON of that shape
        """
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e}") from e

        if isinstance(document, dict):
            default_surah_id = document.get("surah_number", default_surah_id)
            items = document.get("translations")
        else:
            items = document
        if not isinstance(items, list):
            raise ValidationError("Expected a list of translations")

        for index, item in enumerate(items, start=1):
            try:
                if not isinstance(item, dict):
                    raise ValidationError("Expected an object")
                surah_value = item.get("surah_id", default_surah_id)
                if surah_value is None:
                    raise ValidationError("Surah number missing and no default surah given")
                ayah_value = item.get("ayah_number", item.get("verse_number"))
                if ayah_value is None:
                    raise ValidationError("Ayah number missing")
                translation = item.get("translation")
                if not isinstance(translation, str):
                    raise ValidationError("Translation text missing")
                yield ImportRow(
                    row=index,
                    surah_id=_parse_int(surah_value, "surah number"),
                    ayah_number=_parse_int(ayah_value, "ayah number"),
                    translation=translation,
                )
            except ValidationError as e:
                yield RowError(row=index, message=str(e))

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_translations(
        self,
        rows: Iterable[ParsedRow],
        source_id: int,
        cancel: Optional[CancelToken] = None,
    ) -> ImportResult:
        """
        Upsert each row's translation for ``source_id``.

        Each row commits on its own. Unknown addresses and malformed rows are
        recorded as row errors; storage failures abort the batch. ``cancel`` is
        checked before every row, and rows already imported stay imported.

        Raises:
            ForeignKeyError: Unknown source
            StorageError: Storage failure
        """
        self.annotations.require_reference("translation_sources", "source", source_id)

        result = ImportResult()
        for item in rows:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                logger.warning("Import into source %s cancelled after %s rows", source_id, result.imported_count)
                break
            if isinstance(item, RowError):
                result.errors.append(item)
                continue
            try:
                ayah = self.corpus.get_ayah_by_address(item.surah_id, item.ayah_number)
                self.annotations.upsert_translation(ayah.id, source_id, item.translation)
            except (NotFoundError, ValidationError, ForeignKeyError) as e:
                result.errors.append(RowError(row=item.row, message=str(e)))
                continue
            result.imported_count += 1

        logger.info("Import into source %s: %s", source_id, result.summary())
        return result

    def import_file(
        self,
        content: str,
        source_id: int,
        format: ExportFormat | str = ExportFormat.JSON,
        default_surah_id: Optional[int] = None,
        cancel: Optional[CancelToken] = None,
    ) -> ImportResult:
        """Parse ``content`` in the given format and import it."""
        try:
            format = ExportFormat(format)
        except ValueError:
            raise ValidationError(f"Unsupported import format: {format!r}") from None
        if format is ExportFormat.JSON:
            rows = self.parse_json(content, default_surah_id)
        else:
            rows = self.parse_csv(content, default_surah_id)
        return self.import_translations(rows, source_id, cancel=cancel)
