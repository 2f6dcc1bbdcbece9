"""Remove ZIP codes repeated across duplicate catalog records."""
import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from ziptag.config import DEFAULT_CATALOG_PATH
from ziptag.errors import CatalogError
from ziptag.services.geo_catalog import GeoCatalog, remove_duplicate_zip_codes


def main():
    parser = argparse.ArgumentParser(description='Clean duplicate ZIP codes in a catalog file')
    parser.add_argument(
        '--input',
        default=str(DEFAULT_CATALOG_PATH),
        help='Path to catalog JSON'
    )
    parser.add_argument(
        '--output',
        default='updatedCaliforniaAreas.json',
        help='Where to write the cleaned catalog'
    )
    args = parser.parse_args()

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"❌ Catalog file not found: {input_path}")
        sys.exit(1)

    try:
        data = json.loads(input_path.read_text(encoding="utf-8"))
        cleaned = remove_duplicate_zip_codes(data)
        # Make sure the result still loads
        catalog = GeoCatalog.from_dict(cleaned)
    except (json.JSONDecodeError, KeyError, CatalogError) as e:
        print("❌ Error parsing JSON. Please provide a valid catalog file.")
        print(f"   {e}")
        sys.exit(1)

    output_path = Path(args.output)
    output_path.write_text(json.dumps(cleaned, indent=2), encoding="utf-8")
    print(f"✅ Cleaned catalog saved to {output_path}")
    for name, size in catalog.sizes().items():
        print(f"   {name}: {size} places")


if __name__ == "__main__":
    main()
