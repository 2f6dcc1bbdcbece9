"""Initialize database schema."""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from sqlalchemy import inspect
from ziptag.config import get_settings
from ziptag.database import engine, init_db


def main():
    """Create the tables and list what exists."""
    settings = get_settings()
    print(f"Initializing database at: {settings.database_url}")

    init_db()
    print("✅ Database schema created successfully!")

    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ Tables: {', '.join(tables)}")

    columns = inspect(engine).get_columns("stored_collections")
    print("\n📋 stored_collections table structure:")
    for col in columns:
        print(f"  - {col['name']}: {col['type']}")


if __name__ == "__main__":
    main()
