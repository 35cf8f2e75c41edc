"""
Command line administration of a Mushaf database.

Usage:
    mushaf init
    mushaf load-ayahs quran.csv
    mushaf verify
    mushaf export 1 --source 3 --format csv > surah_1.csv
    mushaf import surah_1.csv --source 3 --format csv --surah 1
    mushaf stats
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from mushaf.config import get_settings
from mushaf.core import AnnotationStore, BulkExchange, CorpusStore
from mushaf.data import load_ayahs_csv
from mushaf.exceptions import MushafError, ValidationError
from mushaf.logging_utils import setup_logging
from mushaf.models import ExportFormat
from mushaf.storage import Database

logger = logging.getLogger(__name__)


def _cmd_init(db: Database, args: argparse.Namespace) -> int:
    count = CorpusStore(db).bootstrap_surahs()
    print(f"Initialized {db.db_path_str} with {count} surahs")
    return 0


def _cmd_load_ayahs(db: Database, args: argparse.Namespace) -> int:
    corpus = CorpusStore(db)
    corpus.bootstrap_surahs()
    ayahs = load_ayahs_csv(args.csv)
    added = corpus.add_ayahs(ayahs)
    print(f"Loaded {added} ayahs from {args.csv}")
    return _cmd_verify(db, args)


def _cmd_verify(db: Database, args: argparse.Namespace) -> int:
    report = CorpusStore(db).verify_integrity()
    print(f"Surahs: {report.surah_count}")
    print(f"Ayahs:  {report.ayah_count}")
    for surah_id, declared, actual in report.count_mismatches:
        print(f"  Surah {surah_id}: expected {declared} ayahs, found {actual}")
    for v in report.ordering_violations:
        print(
            f"  Ayah {v.surah_id}:{v.ayah_number} has number {v.number_in_quran}, "
            f"not after {v.previous_number_in_quran}"
        )
    if report.is_consistent:
        print("Corpus is complete and consistent")
        return 0
    print("Corpus has problems")
    return 1


def _cmd_export(db: Database, args: argparse.Namespace) -> int:
    content = BulkExchange(db).export_surah_translations(args.surah, args.source, args.format)
    if args.output:
        Path(args.output).write_text(content, encoding="utf-8")
        print(f"Exported surah {args.surah} to {args.output}")
    else:
        sys.stdout.write(content)
    return 0


def _cmd_import(db: Database, args: argparse.Namespace) -> int:
    try:
        content = Path(args.file).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot read {args.file}: {e}") from e
    result = BulkExchange(db).import_file(content, args.source, args.format, default_surah_id=args.surah)
    print(result.summary())
    for error in result.errors:
        print(f"  {error}")
    return 0


def _cmd_stats(db: Database, args: argparse.Namespace) -> int:
    corpus = CorpusStore(db).get_stats()
    annotations = AnnotationStore(db).get_stats()
    print(f"Surahs:        {corpus.stored_surahs}/{corpus.total_surahs}")
    print(f"Ayahs:         {corpus.stored_ayahs}/{corpus.total_ayahs}")
    print(f"Translations:  {annotations.total_translations} "
          f"({annotations.approved_translations} approved, {annotations.total_sources} sources)")
    print(f"Recitations:   {annotations.total_audio_files} "
          f"({annotations.total_reciters} reciters, {annotations.ayahs_with_audio} ayahs)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mushaf", description="Quran corpus administration")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database (default: settings.database_path)")
    parser.add_argument("--log-level", default=None, help="Log level (default: settings.log_level)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create the schema and the 114 surah rows")
    p.set_defaults(func=_cmd_init)

    p = sub.add_parser("load-ayahs", help="Load ayah text from CSV and verify the corpus")
    p.add_argument("csv", type=Path, help="CSV with surah_id, ayah_number, text columns")
    p.set_defaults(func=_cmd_load_ayahs)

    p = sub.add_parser("verify", help="Check ayah counts and global ordering")
    p.set_defaults(func=_cmd_verify)

    p = sub.add_parser("export", help="Export a surah's translations")
    p.add_argument("surah", type=int, help="Surah number (1-114)")
    p.add_argument("--source", type=int, default=None, help="Translation source id")
    p.add_argument("--format", choices=[f.value for f in ExportFormat], default=ExportFormat.JSON.value)
    p.add_argument("-o", "--output", default=None, help="Write to file instead of stdout")
    p.set_defaults(func=_cmd_export)

    p = sub.add_parser("import", help="Import translations for one source")
    p.add_argument("file", type=Path, help="JSON or CSV file")
    p.add_argument("--source", type=int, required=True, help="Translation source id")
    p.add_argument("--format", choices=[f.value for f in ExportFormat], default=ExportFormat.JSON.value)
    p.add_argument("--surah", type=int, default=None, help="Surah for rows that do not name one")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("stats", help="Show corpus and annotation counts")
    p.set_defaults(func=_cmd_stats)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    db = None
    try:
        db = Database(args.db or get_settings().database_path)
        return args.func(db, args)
    except MushafError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if db is not None:
            db.close()


if __name__ == "__main__":
    sys.exit(main())
