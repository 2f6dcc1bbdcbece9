"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Point the application at a throwaway database before anything imports it
_db_dir = tempfile.mkdtemp(prefix="ziptag-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_db_dir) / 'ziptag.db'}"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from sqlalchemy.orm import sessionmaker

from ziptag.database import init_db, make_engine
from ziptag.schemas import EntryMetadata
from ziptag.services.entry_collector import EntryCollector
from ziptag.services.entry_store import SqlCollectionStore
from ziptag.services.geo_catalog import GeoCatalog
from ziptag.services.zip_resolver import ZipResolver


CATALOG_DATA = {
    "True list": [
        {"city": "Beverly Hills", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90210", "90211"]},
        {"city": "Camarillo", "county": "Ventura", "region": "Southern", "zipCodes": ["93010", "93012"]},
        {"city": "Los Angeles", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90043", "90046"]},
    ],
    "Incorporated Cities": [
        {"city": "Beverly Hills", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90210"]},
        {"city": "Camarillo", "county": "Ventura", "region": "Southern", "zipCodes": ["93012"]},
        {"city": "Ojai", "county": "Ventura", "region": "Southern", "zipCodes": ["93023", "93024"]},
        {"city": "Menlo Park", "county": "San Mateo", "region": "Northern", "zipCodes": ["94025"]},
        {"city": "West Hollywood", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90046"]},
    ],
    "Census-Designated Places (CDP)": [
        {"city": "Santa Rosa Valley", "county": "Ventura", "region": "Southern", "zipCodes": ["93012"]},
        {"city": "Mira Monte", "county": "Ventura", "region": "Southern", "zipCodes": ["93023"]},
        {"city": "Meiners Oaks", "county": "Ventura", "region": "Southern", "zipCodes": ["93023"]},
        {"city": "Ojai", "county": "Ventura", "region": "Southern", "zipCodes": ["93023"]},
        {"city": "West Menlo Park", "county": "San Mateo", "region": "Northern", "zipCodes": ["94025"]},
        {"city": "View Park-Windsor Hills", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90043"]},
        {"city": "Ladera Heights", "county": "Los Angeles", "region": "Southern", "zipCodes": ["90043"]},
    ],
}


@pytest.fixture
def catalog_data():
    return CATALOG_DATA


@pytest.fixture
def catalog():
    return GeoCatalog.from_dict(CATALOG_DATA)


@pytest.fixture
def resolver(catalog):
    return ZipResolver(catalog)


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    init_db(bind=engine)
    yield sessionmaker(engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlCollectionStore(session_factory)


@pytest.fixture
def collector(store):
    collector = EntryCollector(store, "testCollection")
    collector.load()
    return collector


@pytest.fixture
def meta():
    return EntryMetadata(
        office="Law office of Robin Jacobs",
        case_name="Doe v. Acme",
        case_number="ADJ1001",
        case_status="Open",
    )


@pytest.fixture
def client():
    """API client backed by the test database, starting from an empty collection."""
    from fastapi.testclient import TestClient
    from ziptag.main import app

    with TestClient(app) as test_client:
        test_client.app.state.collector.clear(confirmed=True)
        yield test_client
