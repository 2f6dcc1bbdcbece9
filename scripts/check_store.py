"""Quick look at the saved entry collection."""
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from ziptag.config import get_settings
from ziptag.database import SessionLocal, init_db
from ziptag.services.entry_collector import EntryCollector
from ziptag.services.entry_query import count_by
from ziptag.services.entry_store import SqlCollectionStore


def check_store():
    """Load the collection the API would load and summarize it."""
    settings = get_settings()
    init_db()
    collector = EntryCollector(SqlCollectionStore(SessionLocal), settings.collection_name)
    count = collector.load()

    print(f"📊 Collection '{settings.collection_name}': {count} entries")
    if count == 0:
        print("\n⚠️  Collection is empty.")
        return

    for column in ("office", "region", "case_status"):
        print(f"\n  By {column}:")
        for value, n in count_by(collector.entries, column):
            print(f"    - {value}: {n}")

    latest = collector.entries[-1]
    print("\nLatest entry:")
    print(f"  ZIP: {latest.zip_code}")
    print(f"  Place: {latest.city}, {latest.county} ({latest.region})")
    print(f"  Case: {latest.case_number} {latest.case_name}")
    print(f"  Added on: {latest.added_on}")


if __name__ == "__main__":
    check_store()
