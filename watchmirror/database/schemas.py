"""Pydantic schemas for documents and API responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# ============ Document Schemas ============


class FsNode(BaseModel):
    """A filesystem entry as mirrored in the store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: str
    full_path: str
    is_dir: bool
    is_watch_folder: bool = False


class NodePage(BaseModel):
    """Search results with the total number of matching documents."""

    nodes: list[FsNode]
    total: int


# ============ Health Schemas ============


class BindingStats(BaseModel):
    """Message counters for one queue binding."""

    queue: str
    routing_key: str
    processed: int
    failed: int
    timed_out: int


class HealthResponse(BaseModel):
    """Schema for health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    database: str
    consumer_running: bool
    bindings: list[BindingStats] = []
