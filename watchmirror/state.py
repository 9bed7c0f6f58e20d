from dataclasses import dataclass
from typing import Optional

from watchmirror.config import Settings
from watchmirror.database.connection import Database
from watchmirror.database.store import DocumentStore
from watchmirror.ingress.consumer import AmqpConsumer
from watchmirror.services.query_service import QueryService


@dataclass
class AppServices:
    """Holds fully-wired application dependencies."""

    settings: Settings
    database: Database
    store: DocumentStore
    query_service: QueryService
    consumer: Optional[AmqpConsumer] = None
