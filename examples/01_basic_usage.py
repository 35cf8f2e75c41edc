"""
Basic Usage Example for Mushaf

This example demonstrates the simplest way to use Mushaf:
1. Create a database and bootstrap the surah table
2. Load ayah text from a CSV file
3. Translate a surah and export it
4. Move an ayah with the conflict-checked reindex
"""

from mushaf.core import AnnotationStore, BulkExchange, CorpusStore, IndexingEngine
from mushaf.exceptions import ConflictError
from mushaf.data import load_ayahs_csv
from mushaf.storage import Database


def main():
    # Path to a CSV with surah_id, ayah_number, text columns
    csv_path = "data/quran.csv"
    surah_number = 112

    db = Database("database/quran_admin.sqlite")
    try:
        # Step 1: Bootstrap the 114 surahs
        corpus = CorpusStore(db)
        print(f"Step 1: Bootstrapped {corpus.bootstrap_surahs()} surahs\n")

        # Step 2: Load ayah text
        print("Step 2: Loading ayahs...")
        added = corpus.add_ayahs(load_ayahs_csv(csv_path))
        report = corpus.verify_integrity()
        print(f"  Added {added} ayahs")
        print(f"  Complete: {report.is_complete}, consistent: {report.is_consistent}\n")

        # Step 3: Translate and export
        print(f"Step 3: Translating surah {surah_number}...")
        annotations = AnnotationStore(db)
        annotations.create_language("en", "English")
        source = annotations.create_source("Sahih International", "en")
        for ayah in corpus.list_ayahs(surah_number):
            annotations.upsert_translation(ayah.id, source.id, f"Translation of {surah_number}:{ayah.ayah_number}")

        exchange = BulkExchange(db)
        print(exchange.export_surah_translations(surah_number, source.id, format="csv"))

        # Step 4: Reindexing onto an occupied position is refused
        print("Step 4: Reindexing...")
        ayah = corpus.get_ayah_by_address(surah_number, 1)
        try:
            IndexingEngine(db).reindex(ayah.id, surah_number, 2, ayah.number_in_quran + 1)
        except ConflictError as e:
            print(f"  Refused: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
