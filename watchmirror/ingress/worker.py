"""Per-binding message processing with an advisory timeout."""

import asyncio
import time

from loguru import logger

from watchmirror.config import QueueBinding
from watchmirror.database.schemas import BindingStats
from watchmirror.ingress.handler import Disposition, IngressHandler


class BindingWorker:
    """
    Processes the messages of one queue binding, one at a time.

    The timeout only marks a message as slow: in-flight store operations
    are left to finish before the next message is taken.
    """

    def __init__(
        self,
        binding: QueueBinding,
        handler: IngressHandler,
        timeout: float,
    ):
        """
        Initialize binding worker.

        Args:
            binding: Queue binding this worker serves
            handler: Ingress handler for message bodies
            timeout: Seconds after which a message is logged as timed out
        """
        self.binding = binding
        self.handler = handler
        self.timeout = timeout
        self.processed = 0
        self.failed = 0
        self.timed_out = 0

    async def process(self, body: bytes) -> Disposition:
        """
        Handle one message body.

        Args:
            body: Raw message body

        Returns:
            Disposition for the delivery
        """
        logger.debug(f"Reading on {self.binding.queue}")
        start_time = time.monotonic()

        task = asyncio.ensure_future(self.handler.handle(body))
        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if not done:
            self.timed_out += 1
            logger.warning(
                f"Handling on {self.binding.queue} exceeded {self.timeout:.1f}s, "
                "waiting for in-flight store operations"
            )

        try:
            disposition = await task
        except Exception:
            self.failed += 1
            raise

        self.processed += 1
        if disposition != Disposition.ACK:
            self.failed += 1

        logger.debug(
            f"Handled message on {self.binding.queue} in "
            f"{(time.monotonic() - start_time) * 1000:.1f}ms: {disposition.value}"
        )
        return disposition

    @property
    def stats(self) -> BindingStats:
        """Message counters for this binding."""
        return BindingStats(
            queue=self.binding.queue,
            routing_key=self.binding.routing_key,
            processed=self.processed,
            failed=self.failed,
            timed_out=self.timed_out,
        )
