"""Change notifications published by the file watcher."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from watchmirror.core.errors import MalformedNotificationError, UnsupportedActionError

MOVE_SEPARATOR = " -> "


class Action(str, Enum):
    """Filesystem change reported by the watcher."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    RENAME = "RENAME"
    MOVE = "MOVE"


class ChangeNotification(BaseModel):
    """
    A single change event.

    Example payload:

        {"action": "MOVE",
         "path": "/watch_me/2019/05 May/plan.pdf -> /watch_me/2019/plan.pdf",
         "isDir": "false",
         "watchFolder": "/watch_me"}

    ``isDir`` arrives as a string and is coerced to a boolean.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    action: Action
    path: str
    is_dir: bool
    watch_folder: str = Field(default="")


def decode_notification(payload: bytes | str) -> ChangeNotification:
    """
    Decode a raw message body.

    Raises:
        UnsupportedActionError: If the action is not one of ``Action``
        MalformedNotificationError: For any other decoding problem
    """
    try:
        return ChangeNotification.model_validate_json(payload)
    except ValidationError as e:
        for error in e.errors():
            if error["loc"] == ("action",) and error["type"] == "enum":
                raise UnsupportedActionError(error["input"]) from e
        raise MalformedNotificationError(
            f"Can't decode notification: {e.error_count()} error(s): {e}"
        ) from e


def split_move_paths(path: str) -> tuple[str, str]:
    """
    Split a rename/move path into ``(old_path, new_path)``.

    Raises:
        MalformedNotificationError: Unless there are exactly two non-empty paths
    """
    parts = path.split(MOVE_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise MalformedNotificationError(
            f"Expected '<old>{MOVE_SEPARATOR}<new>', got {path!r}"
        )
    return parts[0], parts[1]
