"""Document identity and hierarchical path keys."""

PATH_DELIMITER = "/"
ID_SEPARATOR = "_"


def identify(full_path: str, is_dir: bool) -> str:
    """
    Derive the document ID for a filesystem entry.

    The type discriminator keeps a directory and a file with the same path
    apart, e.g. ``dir_/a/b`` and ``file_/a/b``.

    Args:
        full_path: Absolute path as reported by the watcher
        is_dir: Whether the entry is a directory

    Returns:
        Stable document ID
    """
    type_prefix = "dir" if is_dir else "file"
    return f"{type_prefix}{ID_SEPARATOR}{full_path}"


def index_key(full_path: str) -> tuple[str, ...]:
    """
    Split a path into its ordered segments.

    Empty segments (the leading one of an absolute path, doubled or trailing
    delimiters) are dropped, so ``/a/b`` gives ``("a", "b")``.
    """
    return tuple(segment for segment in full_path.split(PATH_DELIMITER) if segment)


def tree_path(full_path: str) -> str:
    """
    Encode a path's segments as a prefix-searchable string.

    Every segment is closed by the delimiter, so a string prefix match on
    this value is a segment prefix match: ``/a/b/`` is a prefix of
    ``/a/b/c/`` but not of ``/a/bc/``.
    """
    segments = index_key(full_path)
    if not segments:
        return PATH_DELIMITER
    return PATH_DELIMITER + PATH_DELIMITER.join(segments) + PATH_DELIMITER


def leaf_name(path: str) -> str:
    """Last delimited segment of a path, or the path itself if undelimited."""
    return path.rsplit(PATH_DELIMITER, 1)[-1]
