"""Test configuration and fixtures for docql."""

import os
from dataclasses import replace

import pytest
from dotenv import load_dotenv

from docql import DocumentStore, Settings, compile_api, create_engine

# Try to load environment variables from .env file
load_dotenv()


@pytest.fixture(scope="function")
def settings():
    """Default settings; DOCQL_TEST_DATABASE_URL points tests at an external database."""
    test_db_url = os.getenv('DOCQL_TEST_DATABASE_URL')
    if test_db_url:
        return Settings(database_url=test_db_url)
    return Settings()


@pytest.fixture(scope="function")
async def engine(settings):
    """Create a test database engine for each test function."""
    engine = create_engine(settings)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def store(engine):
    store = DocumentStore(engine)
    yield store
    if not str(engine.url).startswith('sqlite'):
        try:
            await store.drop_all()
        except Exception as e:
            print(f"Failed to clean up external database: {e}")


@pytest.fixture(scope="function")
def make_api(store, settings):
    """Compile SDL against the test store and create a clean set of tables."""
    async def _make(source, **overrides):
        api = compile_api(source, store, replace(settings, **overrides) if overrides else settings)
        await store.drop_all()
        await store.create_all()
        return api
    return _make
