"""
Unit tests for bulk translation import and export.
"""

import csv
import io
import json
import threading

import pytest

from mushaf.config import configure
from mushaf.core.exchange import CSV_HEADER, BulkExchange
from mushaf.exceptions import ForeignKeyError, ValidationError
from mushaf.models import ImportRow, RowError


@pytest.fixture
def exchange(db, corpus, annotations):
    return BulkExchange(db, corpus, annotations)


@pytest.fixture
def second_source(annotations, english):
    return annotations.create_source("Y", "en")


class TestExport:
    """Test surah export."""

    def test_untranslated_ayahs_included(self, exchange, annotations, fatiha, source_x):
        """Test that every ayah appears, translated or not, in order."""
        annotations.upsert_translation(fatiha[1].id, source_x.id, "Praise be to God")
        rows = list(exchange.iter_export_rows(1, source_x.id))
        assert [r.verse_number for r in rows] == [1, 2, 3, 4, 5, 6, 7]
        assert rows[1].translation == "Praise be to God"
        assert rows[1].source_name == "X"
        assert rows[1].language_code == "en"
        assert rows[0].translation is None

    def test_source_filter_keeps_all_ayahs(self, exchange, annotations, fatiha, source_x, second_source):
        """Test that filtering by source does not drop ayahs other sources translated."""
        annotations.upsert_translation(fatiha[0].id, second_source.id, "only in Y")
        rows = list(exchange.iter_export_rows(1, source_x.id))
        assert len(rows) == 7
        assert all(r.translation is None for r in rows)

    def test_json(self, exchange, annotations, fatiha, source_x):
        annotations.upsert_translation(fatiha[0].id, source_x.id, "In the name of God")
        document = json.loads(exchange.export_surah_translations(1, source_x.id, "json"))
        assert document["surah_number"] == 1
        assert len(document["translations"]) == 7
        assert document["translations"][0]["text_arabic"] == fatiha[0].text
        assert document["translations"][0]["translation"] == "In the name of God"

    def test_json_keeps_arabic_unescaped(self, exchange, fatiha):
        assert fatiha[0].text in exchange.export_surah_translations(1)

    def test_csv_quotes_delimiter(self, exchange, annotations, fatiha, source_x):
        """Test that fields containing the delimiter survive a round trip through a CSV reader."""
        annotations.upsert_translation(fatiha[0].id, source_x.id, "In the name of God, the Merciful")
        content = exchange.export_surah_translations(1, source_x.id, "csv")
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0] == CSV_HEADER
        assert rows[1] == ["1", fatiha[0].text, "In the name of God, the Merciful", "X", "en"]
        assert rows[2][2:] == ["", "", ""]
        assert '"In the name of God, the Merciful"' in content

    def test_csv_custom_delimiter(self, exchange, fatiha):
        configure(csv_delimiter=";")
        first_line = exchange.export_surah_translations(1, format="csv").splitlines()[0]
        assert first_line == ";".join(CSV_HEADER)

    def test_bad_format(self, exchange, fatiha):
        with pytest.raises(ValidationError):
            exchange.export_surah_translations(1, format="xml")

    def test_bad_surah(self, exchange):
        with pytest.raises(ValidationError):
            exchange.export_surah_translations(115)


class TestParseCsv:
    """Test delimited import parsing."""

    def test_header_skipped(self, exchange):
        rows = list(exchange.parse_csv("surah,ayah,translation\n1,1,In the name of God\n"))
        assert rows == [ImportRow(row=2, surah_id=1, ayah_number=1, translation="In the name of God")]

    def test_no_header(self, exchange):
        rows = list(exchange.parse_csv("1,2,Praise\n"))
        assert rows[0].row == 1
        assert rows[0].ayah_number == 2

    def test_quoted_delimiter(self, exchange):
        rows = list(exchange.parse_csv('1,1,"In the name of God, the Merciful"\n'))
        assert rows[0].translation == "In the name of God, the Merciful"

    def test_two_fields_use_default_surah(self, exchange):
        rows = list(exchange.parse_csv("3,The Merciful\n", default_surah_id=1))
        assert (rows[0].surah_id, rows[0].ayah_number) == (1, 3)

    def test_two_fields_without_default(self, exchange):
        rows = list(exchange.parse_csv("3,The Merciful\n"))
        assert isinstance(rows[0], RowError)

    def test_short_row_is_row_error(self, exchange):
        """Test that a row with one field fails alone and parsing continues."""
        rows = list(exchange.parse_csv("1,1,ok\njunk\n1,2,fine\n"))
        assert isinstance(rows[1], RowError)
        assert rows[1].row == 2
        assert isinstance(rows[2], ImportRow)

    def test_non_numeric_row(self, exchange):
        rows = list(exchange.parse_csv("1,1,ok\n1,x,bad\n"))
        assert isinstance(rows[1], RowError)
        assert "ayah number" in rows[1].message

    def test_blank_lines_ignored(self, exchange):
        rows = list(exchange.parse_csv("1,1,a\n\n1,2,b\n"))
        assert [r.ayah_number for r in rows] == [1, 2]

    def test_header_after_blank_lines(self, exchange):
        rows = list(exchange.parse_csv("\n\nSurah,Ayah,Translation\n1,1,one\n"))
        assert rows == [ImportRow(row=4, surah_id=1, ayah_number=1, translation="one")]

    @pytest.mark.parametrize("line", ["1,0,zero", "0,1,zero", "1,-3,negative", "1,99999999999999999999,huge"])
    def test_out_of_range_number(self, exchange, line):
        rows = list(exchange.parse_csv(f"{line}\n1,2,two\n"))
        assert isinstance(rows[0], RowError)
        assert "out of range" in rows[0].message
        assert isinstance(rows[1], ImportRow)


class TestParseJson:
    """Test JSON import parsing."""

    def test_export_document(self, exchange):
        content = json.dumps({"surah_number": 1, "translations": [{"verse_number": 2, "translation": "Praise"}]})
        rows = list(exchange.parse_json(content))
        assert rows == [ImportRow(row=1, surah_id=1, ayah_number=2, translation="Praise")]

    def test_plain_list(self, exchange):
        content = json.dumps([{"surah_id": 2, "ayah_number": 1, "translation": "Alif Lam Mim"}])
        assert list(exchange.parse_json(content))[0].surah_id == 2

    def test_bad_items(self, exchange):
        content = json.dumps([{"ayah_number": 1, "translation": "t"}, "junk", {"surah_id": 1, "translation": "t"}])
        rows = list(exchange.parse_json(content))
        assert all(isinstance(r, RowError) for r in rows)
        assert [r.row for r in rows] == [1, 2, 3]

    def test_invalid_document(self, exchange):
        with pytest.raises(ValidationError):
            list(exchange.parse_json("{not json"))
        with pytest.raises(ValidationError):
            list(exchange.parse_json('{"translations": 5}'))


class TestImport:
    """Test translation import."""

    def test_partial_failure(self, exchange, annotations, fatiha, source_x):
        """Test that one bad row fails alone and later rows still import."""
        rows = [
            ImportRow(row=1, surah_id=1, ayah_number=1, translation="one"),
            ImportRow(row=2, surah_id=1, ayah_number=2, translation="two"),
            ImportRow(row=3, surah_id=1, ayah_number=99, translation="missing"),
            ImportRow(row=4, surah_id=1, ayah_number=4, translation="four"),
            ImportRow(row=5, surah_id=1, ayah_number=5, translation="five"),
        ]
        result = exchange.import_translations(rows, source_x.id)
        assert result.imported_count == 4
        assert result.error_count == 1
        assert result.errors[0].row == 3
        assert annotations.get_translation(fatiha[4].id, source_x.id).text == "five"

    def test_bad_surah_row(self, exchange, fatiha, source_x):
        rows = [
            ImportRow(row=1, surah_id=200, ayah_number=1, translation="x"),
            ImportRow(row=2, surah_id=1, ayah_number=1, translation="y"),
        ]
        result = exchange.import_translations(rows, source_x.id)
        assert (result.imported_count, result.error_count) == (1, 1)

    def test_empty_text_row(self, exchange, fatiha, source_x):
        result = exchange.import_translations(
            [ImportRow(row=1, surah_id=1, ayah_number=1, translation="  ")], source_x.id
        )
        assert result.imported_count == 0
        assert result.errors[0].row == 1

    def test_oversized_number_is_row_error(self, exchange, annotations, fatiha, source_x):
        """Test that a number too large for storage fails its row, not the batch."""
        result = exchange.import_file("1,99999999999999999999,huge\n1,2,two\n", source_x.id, "csv")
        assert (result.imported_count, result.error_count) == (1, 1)
        assert result.errors[0].row == 1
        assert annotations.get_translation(fatiha[1].id, source_x.id).text == "two"

    def test_oversized_row_bypassing_parser(self, exchange, fatiha, source_x):
        rows = [
            ImportRow(row=1, surah_id=1, ayah_number=2**70, translation="huge"),
            ImportRow(row=2, surah_id=1, ayah_number=1, translation="one"),
        ]
        result = exchange.import_translations(rows, source_x.id)
        assert (result.imported_count, result.error_count) == (1, 1)

    def test_unknown_source(self, exchange, fatiha):
        with pytest.raises(ForeignKeyError):
            exchange.import_translations([], 999)

    def test_reimport_is_idempotent(self, exchange, annotations, fatiha, source_x):
        content = "1,1,one\n1,2,two\n"
        exchange.import_file(content, source_x.id, "csv")
        result = exchange.import_file(content, source_x.id, "csv")
        assert result.imported_count == 2
        assert annotations.get_stats().total_translations == 2

    def test_cancel_between_rows(self, exchange, annotations, fatiha, source_x):
        """Test that cancelling stops the batch and keeps rows already imported."""
        cancel = threading.Event()

        def rows():
            yield ImportRow(row=1, surah_id=1, ayah_number=1, translation="one")
            cancel.set()
            yield ImportRow(row=2, surah_id=1, ayah_number=2, translation="two")

        result = exchange.import_translations(rows(), source_x.id, cancel=cancel)
        assert result.cancelled is True
        assert result.imported_count == 1
        assert annotations.get_translation(fatiha[0].id, source_x.id).text == "one"
        assert annotations.get_translations_for_ayah(fatiha[1].id) == []

    def test_csv_file_with_parse_errors(self, exchange, fatiha, source_x):
        content = "Surah,Ayah,Translation\n1,1,one\nbroken\n1,99,missing\n1,3,three\n"
        result = exchange.import_file(content, source_x.id, "csv")
        assert result.imported_count == 2
        assert [e.row for e in result.errors] == [3, 4]

    def test_export_then_import(self, exchange, annotations, fatiha, source_x, second_source):
        """Test that an exported JSON document imports into another source."""
        annotations.upsert_translation(fatiha[0].id, source_x.id, "In the name of God")
        content = exchange.export_surah_translations(1, source_x.id, "json")
        result = exchange.import_file(content, second_source.id, "json")
        assert result.imported_count == 1
        assert result.error_count == 6
        assert annotations.get_translation(fatiha[0].id, second_source.id).text == "In the name of God"
