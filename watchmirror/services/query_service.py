"""Query service - read-only listings of the mirrored tree."""

from typing import Optional

from loguru import logger

from watchmirror.core.errors import MissingParameterError
from watchmirror.database.schemas import NodePage
from watchmirror.database.store import DocumentStore


class QueryService:
    """
    Lists mirrored nodes, ordered by full path.

    Has no side effects on the store.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_all(self) -> NodePage:
        """List every node."""
        logger.debug("Listing all nodes")
        return await self.store.search()

    async def list_by_subtree(self, prefix: Optional[str]) -> NodePage:
        """
        List a folder and everything below it.

        Args:
            prefix: Folder path

        Returns:
            Nodes whose path segments start with the folder's segments

        Raises:
            MissingParameterError: If no folder is given
        """
        if prefix is None or not prefix.strip():
            raise MissingParameterError("folder")

        logger.debug(f"Listing nodes under {prefix}")
        return await self.store.search(prefix=prefix)
