"""
Global pytest fixtures for the Link Dispenser test suite.

Responsibilities:
    - Provide a FileLinkStore on a per-test temporary JSON file
    - Provide a LinkManager wired to that store
    - Provide a TestClient whose app context wraps the same store

Why inject the store?
    `create_app(AppContext(store=...))` keeps every test on its own file, so
    no state leaks between tests and no database is needed.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from link_dispenser.context import AppContext
from link_dispenser.manager.link_manager import LinkManager
from link_dispenser.storage.file_store import FileLinkStore


@pytest.fixture
def links_file(tmp_path):
    return str(tmp_path / "links.json")


@pytest.fixture
def store(links_file) -> FileLinkStore:
    """Fresh file-backed store per test (file does not exist yet)."""
    return FileLinkStore(path=links_file)


@pytest.fixture
def manager(store: FileLinkStore) -> LinkManager:
    return LinkManager(store=store)


@pytest.fixture
def client(store: FileLinkStore):
    """
    TestClient with the lifespan running, so the context is opened on enter
    and closed on exit.
    """
    app = create_app(AppContext(store=store))
    with TestClient(app) as test_client:
        yield test_client
