"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports.
"""

import sys
from pathlib import Path

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
from fastapi.testclient import TestClient

from domain.models import create_db_engine, create_session_factory, init_database
from test_fixtures import FakeTransport


@pytest.fixture
def engine(tmp_path):
    """
    A fresh SQLite database per test.

    File-backed rather than in-memory so that several threads can open their
    own connections (concurrent claim tests).
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'feedersync.db'}")
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    """Session for direct repository and service tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(engine, transport):
    """TestClient over an app wired to the test database and fake transport"""
    from main import create_app

    app = create_app(engine=engine, transport=transport)
    with TestClient(app) as test_client:
        yield test_client
