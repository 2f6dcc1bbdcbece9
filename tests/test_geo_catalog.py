"""Test catalog loading and cleaning."""
import copy
import json

import pytest
from pydantic import ValidationError

from ziptag.config import DEFAULT_CATALOG_PATH
from ziptag.errors import CatalogError
from ziptag.schemas import CatalogSource, Place
from ziptag.services.geo_catalog import GeoCatalog, remove_duplicate_zip_codes


def test_partitions_keep_file_order(catalog):
    cities = [p.city for p in catalog.partition(CatalogSource.CDP)]
    assert cities[:3] == ["Santa Rosa Valley", "Mira Monte", "Meiners Oaks"]
    assert catalog.sizes() == {
        "True list": 3,
        "Incorporated Cities": 5,
        "Census-Designated Places (CDP)": 7,
    }


def test_places_prefers_true_list(catalog):
    places = catalog.places()
    keys = [p.key for p in places]
    assert keys.count(("Beverly Hills", "Los Angeles")) == 1
    assert keys.count(("Camarillo", "Ventura")) == 1
    beverly_hills = next(p for p in places if p.city == "Beverly Hills")
    assert beverly_hills.source is CatalogSource.TRUE_LIST
    assert len(places) == 3 + 3 + 7


def test_contains_zip(catalog):
    assert catalog.contains_zip("94025")
    assert not catalog.contains_zip("99999")


def test_zip_codes_are_padded():
    catalog = GeoCatalog.from_dict({
        "True list": [{"city": "Agawam", "county": "Test", "region": "Northern", "zipCodes": [1001, "2134"]}],
    })
    place = catalog.partition(CatalogSource.TRUE_LIST)[0]
    assert place.zip_codes == frozenset({"01001", "02134"})
    assert catalog.partition(CatalogSource.CDP) == ()


def test_missing_field_is_rejected():
    with pytest.raises(CatalogError):
        GeoCatalog.from_dict({"True list": [{"city": "Ojai", "region": "Southern", "zipCodes": []}]})


def test_place_needs_a_source():
    with pytest.raises(ValidationError):
        Place(city="Ojai", county="Ventura", region="Southern", zip_codes=frozenset({"93023"}))

    cdp = Place(city="Ojai", county="Ventura", region="Southern", source=CatalogSource.CDP)
    assert cdp.sort_key()[0] == 1


def test_unknown_region_is_rejected():
    with pytest.raises(CatalogError):
        GeoCatalog.from_dict({"True list": [{"city": "Fresno", "county": "Fresno", "region": "Central", "zipCodes": []}]})


def test_from_file_errors(tmp_path):
    with pytest.raises(CatalogError):
        GeoCatalog.from_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError):
        GeoCatalog.from_file(broken)


def test_bundled_catalog_loads():
    catalog = GeoCatalog.from_file(DEFAULT_CATALOG_PATH)
    for source in CatalogSource:
        assert catalog.partition(source)
    assert catalog.contains_zip("90210")


def test_remove_duplicate_zip_codes(catalog_data):
    original = copy.deepcopy(catalog_data)
    cleaned = remove_duplicate_zip_codes(catalog_data)

    incorporated_ojai = next(
        r for r in cleaned["Incorporated Cities"] if r["city"] == "Ojai"
    )
    cdp_ojai = next(
        r for r in cleaned["Census-Designated Places (CDP)"] if r["city"] == "Ojai"
    )
    assert incorporated_ojai["zipCodes"] == ["93024"]
    assert cdp_ojai["zipCodes"] == ["93023"]
    # True list is not part of the cleaning pass
    assert cleaned["True list"] == catalog_data["True list"]
    assert catalog_data == original


def test_remove_duplicate_zip_codes_round_trips_through_json(catalog_data):
    cleaned = remove_duplicate_zip_codes(catalog_data)
    reloaded = GeoCatalog.from_dict(json.loads(json.dumps(cleaned)))
    assert reloaded.sizes() == GeoCatalog.from_dict(catalog_data).sizes()
