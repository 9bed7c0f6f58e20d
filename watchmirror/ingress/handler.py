"""Ingress adapter: decodes message bodies and drives the projector."""

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from watchmirror.config import Settings
from watchmirror.core.errors import (
    MalformedNotificationError,
    SourceNotFoundError,
    StoreUnavailableError,
    UnsupportedActionError,
)
from watchmirror.core.notification import decode_notification
from watchmirror.core.projector import Projector


class Disposition(str, Enum):
    """What the transport should do with a delivery."""

    ACK = "ack"
    REJECT = "reject"
    REQUEUE = "requeue"


@dataclass(frozen=True)
class AckPolicy:
    """Which projection failures are handed back to the broker for retry."""

    requeue_on_store_error: bool = True
    requeue_missing_source: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "AckPolicy":
        return cls(
            requeue_on_store_error=settings.requeue_on_store_error,
            requeue_missing_source=settings.requeue_missing_source,
        )


class IngressHandler:
    """
    Handles one message body at a time.

    This is the only place that logs projection outcomes and decides
    whether a delivery is acknowledged, dropped or requeued.
    """

    def __init__(self, projector: Projector, policy: AckPolicy | None = None, verbose: bool = False):
        self.projector = projector
        self.policy = policy or AckPolicy()
        self.verbose = verbose

    async def handle(self, body: bytes) -> Disposition:
        """
        Decode and apply a notification.

        Args:
            body: Raw message body

        Returns:
            Disposition for the delivery
        """
        try:
            notification = decode_notification(body)
        except UnsupportedActionError as e:
            logger.critical(
                f"Dropping notification with unsupported action {e.action!r}; "
                f"watcher and service message schemas have diverged: {_preview(body)}"
            )
            return Disposition.REJECT
        except MalformedNotificationError as e:
            logger.error(f"Can't decode notification {_preview(body)}: {e}")
            return Disposition.REJECT

        if self.verbose:
            logger.info(f"Handling notification {notification!r}")

        try:
            projection = await self.projector.apply(notification)
        except MalformedNotificationError as e:
            logger.error(f"Dropping malformed {notification.action.value} notification: {e}")
            return Disposition.REJECT
        except SourceNotFoundError as e:
            logger.error(
                f"{notification.action.value} source missing for {notification.path!r}: {e}"
            )
            if self.policy.requeue_missing_source:
                return Disposition.REQUEUE
            return Disposition.REJECT
        except StoreUnavailableError as e:
            logger.error(f"Store failed on {notification.action.value} {notification.path!r}: {e}")
            if self.policy.requeue_on_store_error:
                return Disposition.REQUEUE
            return Disposition.ACK

        if projection.previous_doc_id is not None:
            logger.debug(
                f"{projection.action.value}: {projection.previous_doc_id} -> {projection.doc_id}"
            )
        else:
            logger.debug(f"{projection.action.value}: {projection.doc_id}")
        return Disposition.ACK


def _preview(body: bytes | str, limit: int = 200) -> str:
    """Printable, bounded excerpt of a message body for log lines."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if len(body) > limit:
        return repr(body[:limit] + "...")
    return repr(body)
