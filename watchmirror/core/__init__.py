"""Identity scheme and change notifications."""

from watchmirror.core.identity import identify, index_key, leaf_name, tree_path
from watchmirror.core.notification import (
    Action,
    ChangeNotification,
    decode_notification,
    split_move_paths,
)

__all__ = [
    "identify",
    "index_key",
    "leaf_name",
    "tree_path",
    "Action",
    "ChangeNotification",
    "decode_notification",
    "split_move_paths",
]
