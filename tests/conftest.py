"""
pytest configuration and fixtures for Quote Journal tests
"""

import pytest
import random
import tempfile
import shutil
from pathlib import Path
import sys

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from database.connection import DatabaseManager
from database.operations import QuoteStore
from utils.config_manager import ExportConfig
from tests.factories import FakeClock


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def db_path(temp_dir):
    """Isolated database file per test"""
    return str(temp_dir / "quotes.db")


@pytest.fixture
def db_manager(db_path):
    """Initialized database manager on an isolated file"""
    manager = DatabaseManager(db_path)
    manager.initialize()
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(db_path, clock):
    """Quote store with a deterministic clock and seeded rng"""
    quote_store = QuoteStore(DatabaseManager(db_path), clock=clock, rng=random.Random(1234))
    yield quote_store
    quote_store.close()


@pytest.fixture
def export_config(temp_dir):
    """Export settings writing into the temp directory"""
    return ExportConfig(output_dir=str(temp_dir / "exports"))


@pytest.fixture
def sample_quotes():
    """Sample quotes covering several scripts"""
    return [
        ("The unexamined life is not worth living.", "Socrates"),
        ("学而不思则罔，思而不学则殆。", "孔子"),
        ("Не тот друг, кто мёдом мажет, а тот, кто правду скажет.", "Пословица"),
        ("Stay hungry, stay foolish. 🚀", "Steve Jobs"),
    ]


def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
