"""
Quillpost Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_container: In-memory stand-in for a Cosmos ContainerProxy
    ├── connection: DatabaseConnection wrapping fake_container
    ├── stub_manager: Connection manager returning `connection`, counting calls
    ├── test_client: HTTPX AsyncClient bound to the app with stub_manager injected
    └── sample_post_data: Stored-document dict for model tests
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["COSMOS_DB_CONNECTION_STRING"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import DatabaseConnection, get_connection_manager


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════


class FakeCosmosContainer:
    """
    In-memory container supporting the two calls PostRepository makes.

    create_item() stores a copy and returns it with Cosmos system properties
    added. query_items() honours "ORDER BY c.createdAt DESC". Setting
    `fail_with` makes both calls raise that exception.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.queries: List[str] = []
        self.fail_with: Optional[Exception] = None

    async def create_item(self, body: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        stored = dict(body)
        stored.update(
            {
                "_rid": f"rid-{len(self.documents)}",
                "_self": f"dbs/x/colls/y/docs/{len(self.documents)}/",
                "_etag": '"00000000-0000-0000-0000-000000000000"',
                "_attachments": "attachments/",
                "_ts": 1760882592,
            }
        )
        self.documents.append(stored)
        return dict(stored)

    def query_items(self, query: str, **kwargs):
        self.queries.append(query)
        return self._iterate(query)

    async def _iterate(self, query: str):
        if self.fail_with is not None:
            raise self.fail_with
        documents = list(self.documents)
        if "ORDER BY c.createdAt DESC" in query:
            documents.sort(key=lambda d: d["createdAt"], reverse=True)
        for document in documents:
            yield dict(document)


class StubConnectionManager:
    """Hands out a fixed connection (or raises `error`) and counts requests."""

    def __init__(self, connection: DatabaseConnection, error: Optional[Exception] = None):
        self.connection = connection
        self.error = error
        self.calls = 0

    async def get_connection(self) -> DatabaseConnection:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.connection


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fake_container():
    return FakeCosmosContainer()


@pytest.fixture
def connection(fake_container):
    return DatabaseConnection(client=MagicMock(), database=MagicMock(), container=fake_container)


@pytest.fixture
def stub_manager(connection):
    return StubConnectionManager(connection)


@pytest.fixture
def sample_post_data():
    """A stored post document as Cosmos returns it."""
    return {
        "id": "9b2f6c1e4d7a4e0f8c3b5a6d7e8f9012",
        "title": "Hello",
        "content": "World",
        "authorId": "author-1",
        "tags": ["intro", "meta"],
        "published": True,
        "createdAt": "2026-10-19T12:00:00.000000Z",
        "updatedAt": "2026-10-19T12:00:00.000000Z",
        "_rid": "abc==",
        "_etag": '"0100"',
        "_ts": 1760875200,
    }


@pytest_asyncio.fixture
async def test_client(stub_manager):
    """
    HTTPX AsyncClient talking to the app in-process.

    The connection manager dependency is replaced with stub_manager, so no
    request reaches a real Cosmos account.
    """
    from app.main import app

    app.dependency_overrides[get_connection_manager] = lambda: stub_manager
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
