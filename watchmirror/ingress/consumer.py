"""AMQP consumer feeding notifications to the binding workers."""

import asyncio
import threading
from functools import partial
from typing import Callable

from kombu import Connection, Exchange, Queue
from kombu.message import Message
from kombu.mixins import ConsumerMixin
from loguru import logger

from watchmirror.config import QueueBinding, Settings
from watchmirror.database.schemas import BindingStats
from watchmirror.ingress.handler import Disposition, IngressHandler
from watchmirror.ingress.worker import BindingWorker


class BindingConsumer(ConsumerMixin):
    """
    Drains one binding's queue, reconnecting whenever the broker goes away.

    The prefetch window is set on the kombu Consumer, so the QoS is in place
    before basic_consume is sent.
    """

    def __init__(
        self,
        connection: Connection,
        queue: Queue,
        prefetch_count: int,
        on_message: Callable[[Message], None],
    ):
        self.connection = connection
        self.queue = queue
        self.prefetch_count = prefetch_count
        self.on_message = on_message

    def get_consumers(self, Consumer, channel):
        return [
            Consumer(
                queues=[self.queue],
                on_message=self.on_message,
                prefetch_count=self.prefetch_count,
            )
        ]

    def on_connection_revived(self):
        logger.info(f"Broker connection established for {self.queue.name}")

    def on_connection_error(self, exc, interval):
        logger.warning(
            f"Broker unavailable for {self.queue.name}: {exc}; retrying in {interval}s"
        )


class AmqpConsumer:
    """
    Consumes every configured binding on its own thread.

    Each thread owns its broker connection and drains its queue one message
    at a time. Message bodies are handed to the asyncio event loop and the
    thread waits for the outcome before acknowledging and taking the next
    message, so messages of one binding are never processed concurrently.
    """

    def __init__(
        self,
        settings: Settings,
        handler: IngressHandler,
        event_loop: asyncio.AbstractEventLoop,
    ):
        self.url = settings.amqp_url
        self.exchange = Exchange(settings.amqp_exchange, type="topic", durable=True)
        self.prefetch_count = settings.prefetch_count
        self.poll_interval = settings.consumer_poll_interval
        self.event_loop = event_loop
        self.workers = [
            BindingWorker(binding, handler, settings.handler_timeout)
            for binding in settings.bindings
        ]
        self._consumers: list[BindingConsumer] = []
        self._threads: list[threading.Thread] = []
        self._running = False

    async def start(self) -> None:
        """Start one consumer thread per binding."""
        if self._running:
            return

        self._running = True
        logger.info("Starting AMQP consumer...")

        for worker in self.workers:
            consumer = BindingConsumer(
                Connection(self.url),
                self._queue_for(worker.binding),
                self.prefetch_count,
                partial(self._on_message, worker),
            )
            thread = threading.Thread(
                target=self._consume,
                args=(consumer,),
                name=f"consumer-{worker.binding.queue}",
                daemon=True,
            )
            thread.start()
            self._consumers.append(consumer)
            self._threads.append(thread)

        logger.info(f"AMQP consumer started, {len(self._threads)} binding(s)")

    async def stop(self) -> None:
        """Stop all consumer threads after their current message."""
        if not self._running:
            return

        logger.info("Stopping AMQP consumer...")
        self._running = False
        for consumer in self._consumers:
            consumer.should_stop = True

        for thread in self._threads:
            await asyncio.to_thread(thread.join, self.poll_interval * 5)

        for consumer in self._consumers:
            consumer.connection.release()

        self._consumers.clear()
        self._threads.clear()
        logger.info("AMQP consumer stopped")

    def _queue_for(self, binding: QueueBinding) -> Queue:
        return Queue(
            binding.queue,
            exchange=self.exchange,
            routing_key=binding.routing_key,
            durable=True,
        )

    def _consume(self, consumer: BindingConsumer) -> None:
        """Consume loop for one binding. Runs on its own thread."""
        queue = consumer.queue
        logger.info(
            f"Consuming {queue.name} bound to {self.exchange.name}:{queue.routing_key}"
        )
        try:
            # Connection and channel errors are retried inside run()
            consumer.run(safety_interval=self.poll_interval)
        except Exception as e:
            logger.exception(f"Consumer for {queue.name} stopped: {e}")

    def _on_message(self, worker: BindingWorker, message: Message) -> None:
        """Process one delivery and settle it with the broker."""
        future = asyncio.run_coroutine_threadsafe(
            worker.process(message.body), self.event_loop
        )
        try:
            disposition = future.result()
        except Exception as e:
            logger.exception(f"Unhandled error processing message on {worker.binding.queue}: {e}")
            message.reject(requeue=False)
            return

        if disposition == Disposition.ACK:
            message.ack()
        elif disposition == Disposition.REQUEUE:
            message.requeue()
        else:
            message.reject(requeue=False)

    @property
    def stats(self) -> list[BindingStats]:
        """Message counters per binding."""
        return [worker.stats for worker in self.workers]

    @property
    def is_running(self) -> bool:
        """Check if every consumer thread is alive."""
        return self._running and all(thread.is_alive() for thread in self._threads)
