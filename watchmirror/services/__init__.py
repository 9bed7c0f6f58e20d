"""High-level services for watchmirror."""

from watchmirror.services.query_service import QueryService

__all__ = [
    "QueryService",
]
