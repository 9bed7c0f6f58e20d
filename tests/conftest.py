"""
Pytest configuration for watchmirror.
"""
import json
from typing import Optional

import pytest
import pytest_asyncio

from watchmirror.core.errors import StoreUnavailableError
from watchmirror.core.projector import ChangeProjector
from watchmirror.database.connection import Database
from watchmirror.database.schemas import FsNode, NodePage
from watchmirror.database.store import SqlDocumentStore


def notification_body(action: str, path: str, is_dir: bool = False, watch_folder: str = "/watch_me") -> bytes:
    """Encode a notification the way the watcher publishes it."""
    return json.dumps(
        {
            "action": action,
            "path": path,
            "isDir": "true" if is_dir else "false",
            "watchFolder": watch_folder,
        }
    ).encode("utf-8")


class FailingStore:
    """Store whose every operation fails, as if the database were down."""

    def __init__(self):
        self.calls: list[str] = []

    async def save(self, doc_id: str, node: FsNode) -> None:
        self.calls.append(f"save {doc_id}")
        raise StoreUnavailableError("connection refused")

    async def delete(self, doc_id: str) -> None:
        self.calls.append(f"delete {doc_id}")
        raise StoreUnavailableError("connection refused")

    async def get(self, doc_id: str) -> Optional[FsNode]:
        self.calls.append(f"get {doc_id}")
        raise StoreUnavailableError("connection refused")

    async def search(self, prefix: Optional[str] = None) -> NodePage:
        self.calls.append(f"search {prefix}")
        raise StoreUnavailableError("connection refused")


@pytest.fixture
def database_url(tmp_path):
    """URL of a fresh SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'watchmirror.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    """Initialized database, closed after the test."""
    db = Database(database_url)
    await db.init()
    yield db
    await db.close()


@pytest.fixture
def store(database):
    """SQL-backed document store."""
    return SqlDocumentStore(database)


@pytest.fixture
def projector(store):
    """Change projector writing to the test store."""
    return ChangeProjector(store)
