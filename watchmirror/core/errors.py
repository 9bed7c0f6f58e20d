"""Error taxonomy shared by the projection, ingress and query layers."""


class WatchMirrorError(Exception):
    """Base class for all watchmirror errors."""


class MalformedNotificationError(WatchMirrorError):
    """Notification cannot be decoded or is structurally invalid.

    Retrying cannot make the payload well-formed.
    """


class UnsupportedActionError(MalformedNotificationError):
    """Notification names an action this service does not know.

    Indicates the watcher and this service disagree on the message schema.
    """

    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Unsupported action: {action!r}")


class SourceNotFoundError(WatchMirrorError):
    """The document a rename or move starts from is not in the store."""

    def __init__(self, doc_id: str, path: str):
        self.doc_id = doc_id
        self.path = path
        super().__init__(f"No document with ID {doc_id} for path {path}")


class StoreUnavailableError(WatchMirrorError):
    """The document store failed to read or write."""


class MissingParameterError(WatchMirrorError):
    """A required query parameter was not supplied."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} argument must be set")
