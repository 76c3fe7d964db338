"""Shared fixtures for the Friends directory tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from friends_directory.api.main import create_app
from friends_directory.directory.index import NameIndex
from friends_directory.directory.service import DirectoryService
from friends_directory.store import InMemoryStore
from friends_directory.store.queries import ReadQuery


class RecordingStore(InMemoryStore):
    """Memory store that records every read query it serves."""

    def __init__(self) -> None:
        super().__init__()
        self.queries: List[ReadQuery] = []

    async def query(self, query: ReadQuery) -> List[Dict[str, Any]]:
        self.queries.append(query)
        return await super().query(query)


class YieldingStore(InMemoryStore):
    """Memory store that gives up the event loop on every read, like a network round-trip."""

    async def query(self, query: ReadQuery) -> List[Dict[str, Any]]:
        await asyncio.sleep(0)
        rows = await super().query(query)
        await asyncio.sleep(0)
        return rows


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest_asyncio.fixture
async def service(store) -> DirectoryService:
    index = NameIndex()
    await index.populate(store)
    index.mark_ready()
    return DirectoryService(store, index)


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def yielding_service() -> DirectoryService:
    index = NameIndex()
    index.mark_ready()
    return DirectoryService(YieldingStore(), index)
