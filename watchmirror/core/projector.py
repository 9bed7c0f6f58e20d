"""Projection of change notifications onto the document store."""

from dataclasses import dataclass
from typing import Optional, Protocol

from watchmirror.core.errors import SourceNotFoundError, UnsupportedActionError
from watchmirror.core.identity import identify, leaf_name
from watchmirror.core.notification import Action, ChangeNotification, split_move_paths
from watchmirror.database.schemas import FsNode
from watchmirror.database.store import DocumentStore


@dataclass(frozen=True)
class Projection:
    """Store mutation performed for one notification."""

    action: Action
    doc_id: str
    previous_doc_id: Optional[str] = None


class Projector(Protocol):
    """Applies a notification to the store."""

    async def apply(self, notification: ChangeNotification) -> Projection:
        ...


class ChangeProjector:
    """
    Turns change notifications into store writes.

    Holds no state between notifications: the store is the only state.
    Every transition tolerates redelivery except RENAME/MOVE, whose source
    is gone once it has been applied.

    Errors are raised, never logged; the caller decides what a failure
    means for the message.
    """

    def __init__(self, store: DocumentStore, delete_any_type: bool = False):
        """
        Initialize projector.

        Args:
            store: Document store to project into
            delete_any_type: Delete both the file and directory identity of
                a path on DELETE, ignoring the reported type
        """
        self.store = store
        self.delete_any_type = delete_any_type

    async def apply(self, notification: ChangeNotification) -> Projection:
        """
        Apply one notification.

        Raises:
            MalformedNotificationError: RENAME/MOVE path is not '<old> -> <new>'
            SourceNotFoundError: RENAME/MOVE source document does not exist
            StoreUnavailableError: The store failed
            UnsupportedActionError: No transition for the action
        """
        action = notification.action
        if action == Action.CREATE:
            return await self._create(notification)
        elif action == Action.DELETE:
            return await self._delete(notification)
        elif action in (Action.RENAME, Action.MOVE):
            return await self._rename(notification)
        raise UnsupportedActionError(action)

    async def _create(self, notification: ChangeNotification) -> Projection:
        path = notification.path
        node = FsNode(
            name=leaf_name(path),
            full_path=path,
            is_dir=notification.is_dir,
            is_watch_folder=notification.watch_folder == path,
        )
        doc_id = identify(path, notification.is_dir)
        await self.store.save(doc_id, node)
        return Projection(action=notification.action, doc_id=doc_id)

    async def _delete(self, notification: ChangeNotification) -> Projection:
        doc_id = identify(notification.path, notification.is_dir)
        await self.store.delete(doc_id)
        if self.delete_any_type:
            await self.store.delete(identify(notification.path, not notification.is_dir))
        return Projection(action=notification.action, doc_id=doc_id)

    async def _rename(self, notification: ChangeNotification) -> Projection:
        old_path, new_path = split_move_paths(notification.path)

        old_id = identify(old_path, notification.is_dir)
        original = await self.store.get(old_id)
        if original is None:
            raise SourceNotFoundError(old_id, old_path)

        # Delete first: a crash before the save loses the entry rather than
        # leaving two live documents for it.
        await self.store.delete(old_id)

        updated = original.model_copy(
            update={"name": leaf_name(new_path), "full_path": new_path}
        )
        new_id = identify(new_path, notification.is_dir)
        await self.store.save(new_id, updated)
        return Projection(
            action=notification.action, doc_id=new_id, previous_doc_id=old_id
        )
