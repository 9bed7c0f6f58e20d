"""Database layer for watchmirror."""

from watchmirror.database.connection import Base, Database
from watchmirror.database.models import FsNodeRecord
from watchmirror.database.schemas import FsNode, NodePage
from watchmirror.database.store import DocumentStore, SqlDocumentStore

__all__ = [
    "Base",
    "Database",
    "FsNodeRecord",
    "FsNode",
    "NodePage",
    "DocumentStore",
    "SqlDocumentStore",
]
