"""
Pytest Configuration and Fixtures.

Shared fixtures: a fixed clock, an in-memory database and offline task sources.
"""
import sys
from datetime import datetime
from pathlib import Path

import pytest
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path (cli.py lives there)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from studycap.allocator import PlanAllocator
from studycap.database import Base
from studycap.task_source import TemplateTaskSource
import studycap.models  # noqa: F401


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "smoke" in path:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def quiet_logging():
    """Drop loguru sinks added during a test (the CLI installs its own)."""
    yield
    logger.remove()


@pytest.fixture
def now():
    return datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def template_allocator():
    return PlanAllocator(TemplateTaskSource(["Cells", "Genetics"]))
