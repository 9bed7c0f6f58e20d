"""Document store adapter for mirrored filesystem entries."""

from typing import Optional, Protocol

from sqlalchemy import ColumnElement, and_, delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from watchmirror.core.errors import StoreUnavailableError
from watchmirror.core.identity import PATH_DELIMITER, tree_path
from watchmirror.database.connection import Database
from watchmirror.database.models import FsNodeRecord
from watchmirror.database.schemas import FsNode, NodePage


def _to_node(record: FsNodeRecord) -> FsNode:
    return FsNode(
        name=record.name,
        full_path=record.full_path,
        is_dir=record.is_dir,
        is_watch_folder=record.is_watch_folder,
    )


def subtree_condition(prefix: str) -> ColumnElement[bool]:
    """
    Match a folder and everything below it.

    A range on the segment-closed key rather than LIKE, so the match is
    case-sensitive, takes wildcards literally and can use the tree_path index.
    """
    prefix_key = tree_path(prefix)
    # Every key under "/a/b/" sorts between "/a/b/" and "/a/b0"
    upper_bound = prefix_key[:-1] + chr(ord(PATH_DELIMITER) + 1)
    return and_(
        FsNodeRecord.tree_path >= prefix_key,
        FsNodeRecord.tree_path < upper_bound,
    )


class DocumentStore(Protocol):
    """Operations the projector and query facade need from a store."""

    async def save(self, doc_id: str, node: FsNode) -> None:
        """Insert or overwrite the document with this ID."""
        ...

    async def delete(self, doc_id: str) -> None:
        """Remove the document with this ID; absent IDs are not an error."""
        ...

    async def get(self, doc_id: str) -> Optional[FsNode]:
        """Fetch a document by ID, or None if it does not exist."""
        ...

    async def search(self, prefix: Optional[str] = None) -> NodePage:
        """List documents ordered by path, optionally limited to a subtree."""
        ...


class SqlDocumentStore:
    """
    DocumentStore backed by a SQLAlchemy async database.

    Every operation runs in its own session and commits before returning.
    SQLAlchemy failures are raised as StoreUnavailableError.
    """

    def __init__(self, database: Database):
        self.database = database

    async def save(self, doc_id: str, node: FsNode) -> None:
        """
        Upsert a document.

        Args:
            doc_id: Document ID derived from the node's path and type
            node: Document body
        """
        record = FsNodeRecord(
            doc_id=doc_id,
            name=node.name,
            full_path=node.full_path,
            tree_path=tree_path(node.full_path),
            is_dir=node.is_dir,
            is_watch_folder=node.is_watch_folder,
        )
        try:
            async with self.database.session() as db:
                await db.merge(record)
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error saving document {doc_id}: {e}") from e

    async def delete(self, doc_id: str) -> None:
        """Delete a document by ID."""
        try:
            async with self.database.session() as db:
                await db.execute(
                    delete(FsNodeRecord).where(FsNodeRecord.doc_id == doc_id)
                )
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error deleting document {doc_id}: {e}") from e

    async def get(self, doc_id: str) -> Optional[FsNode]:
        """Get a document by ID."""
        try:
            async with self.database.session() as db:
                record = await db.get(FsNodeRecord, doc_id)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error getting document {doc_id}: {e}") from e

        if record is None:
            return None
        return _to_node(record)

    async def search(self, prefix: Optional[str] = None) -> NodePage:
        """
        List documents sorted by full path.

        Args:
            prefix: Folder path; when given only that folder and its
                descendants are returned

        Returns:
            Matching documents and their total count
        """
        query = select(FsNodeRecord)
        count_query = select(func.count(FsNodeRecord.doc_id))

        if prefix is not None and tree_path(prefix) != PATH_DELIMITER:
            condition = subtree_condition(prefix)
            query = query.where(condition)
            count_query = count_query.where(condition)

        query = query.order_by(FsNodeRecord.full_path)

        try:
            async with self.database.session() as db:
                result = await db.execute(query)
                records = list(result.scalars().all())
                total_result = await db.execute(count_query)
                total = total_result.scalar() or 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Error searching documents: {e}") from e

        return NodePage(
            nodes=[_to_node(record) for record in records],
            total=total,
        )
