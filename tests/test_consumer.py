"""
Tests for the AMQP consumer.

Uses kombu's in-memory transport, so no broker is needed.
"""
import asyncio
import uuid

import pytest
from kombu import Connection, Exchange, Queue
from kombu.transport import memory

from watchmirror.config import QueueBinding, Settings
from watchmirror.core.identity import identify
from watchmirror.core.projector import ChangeProjector
from watchmirror.ingress.consumer import AmqpConsumer
from watchmirror.ingress.handler import AckPolicy, IngressHandler

from tests.conftest import FailingStore, notification_body


class FakeMessage:
    """Records how a delivery was settled."""

    def __init__(self, body: bytes):
        self.body = body
        self.settled = []

    def ack(self):
        self.settled.append("ack")

    def reject(self, requeue=False):
        self.settled.append("requeue" if requeue else "reject")

    def requeue(self):
        self.settled.append("requeue")


def memory_settings(**overrides) -> Settings:
    suffix = uuid.uuid4().hex
    values = dict(
        amqp_url="memory://",
        amqp_exchange=f"watch-{suffix}",
        bindings=[QueueBinding(queue=f"watcher-{suffix}", routing_key="crud")],
        consumer_poll_interval=0.05,
        handler_timeout_ms=5000,
    )
    values.update(overrides)
    return Settings(**values)


def publish(settings: Settings, bodies: list[bytes]) -> None:
    binding = settings.bindings[0]
    exchange = Exchange(settings.amqp_exchange, type="topic", durable=True)
    queue = Queue(binding.queue, exchange=exchange, routing_key=binding.routing_key, durable=True)
    with Connection(settings.amqp_url) as connection:
        producer = connection.Producer()
        for body in bodies:
            producer.publish(
                body,
                exchange=exchange,
                routing_key=binding.routing_key,
                declare=[queue],
                content_type="application/json",
                content_encoding="utf-8",
            )


class TestMessageSettlement:
    """Dispositions map onto broker acknowledgements."""

    async def settle(self, consumer: AmqpConsumer, body: bytes) -> list[str]:
        message = FakeMessage(body)
        # The handler runs on this loop, so settle from another thread
        await asyncio.to_thread(consumer._on_message, consumer.workers[0], message)
        return message.settled

    @pytest.mark.asyncio
    async def test_applied_message_is_acked(self, projector):
        consumer = AmqpConsumer(
            memory_settings(), IngressHandler(projector), event_loop=asyncio.get_running_loop()
        )

        assert await self.settle(consumer, notification_body("CREATE", "/watch_me/a")) == ["ack"]

    @pytest.mark.asyncio
    async def test_malformed_message_is_rejected(self, projector):
        consumer = AmqpConsumer(
            memory_settings(), IngressHandler(projector), event_loop=asyncio.get_running_loop()
        )

        assert await self.settle(consumer, b"{") == ["reject"]

    @pytest.mark.asyncio
    async def test_store_failure_is_requeued(self):
        handler = IngressHandler(ChangeProjector(FailingStore()), AckPolicy())
        consumer = AmqpConsumer(
            memory_settings(), handler, event_loop=asyncio.get_running_loop()
        )

        assert await self.settle(consumer, notification_body("CREATE", "/watch_me/a")) == ["requeue"]

    def test_event_loop_is_required(self):
        handler = IngressHandler(ChangeProjector(FailingStore()))

        with pytest.raises(TypeError):
            AmqpConsumer(memory_settings(), handler)


class TestMemoryBroker:
    """End to end over the in-memory transport."""

    @pytest.mark.asyncio
    async def test_consumes_and_projects(self, store):
        settings = memory_settings()
        consumer = AmqpConsumer(
            settings, IngressHandler(ChangeProjector(store)), event_loop=asyncio.get_running_loop()
        )

        await consumer.start()
        try:
            await asyncio.to_thread(
                publish,
                settings,
                [
                    notification_body("CREATE", "/watch_me", is_dir=True),
                    b"not json",
                    notification_body("CREATE", "/watch_me/old.pdf"),
                    notification_body("RENAME", "/watch_me/old.pdf -> /watch_me/new.pdf"),
                ],
            )

            for _ in range(200):
                if consumer.workers[0].processed == 4:
                    break
                await asyncio.sleep(0.05)

            assert consumer.is_running
        finally:
            await consumer.stop()

        page = await store.search()
        assert [n.full_path for n in page.nodes] == ["/watch_me", "/watch_me/new.pdf"]
        assert await store.get(identify("/watch_me", True)) is not None

        stats = consumer.stats[0]
        assert stats.processed == 4
        assert stats.failed == 1
        assert not consumer.is_running

    @pytest.mark.asyncio
    async def test_prefetch_is_set_before_consuming(self, projector, monkeypatch):
        calls = []
        for name in ("basic_qos", "basic_consume"):
            original = getattr(memory.Channel, name)

            def spy(self, *args, _name=name, _original=original, **kwargs):
                calls.append((_name, args))
                return _original(self, *args, **kwargs)

            monkeypatch.setattr(memory.Channel, name, spy)

        consumer = AmqpConsumer(
            memory_settings(), IngressHandler(projector), event_loop=asyncio.get_running_loop()
        )
        await consumer.start()
        try:
            for _ in range(100):
                if any(name == "basic_consume" for name, _ in calls):
                    break
                await asyncio.sleep(0.05)
        finally:
            await consumer.stop()

        names = [name for name, _ in calls]
        assert names.index("basic_qos") < names.index("basic_consume")
        qos_args = calls[names.index("basic_qos")][1]
        assert qos_args[1] == 3

    @pytest.mark.asyncio
    async def test_resumes_after_connection_loss(self, store, monkeypatch):
        drain_events = Connection.drain_events
        dropped = []

        def drop_once(self, **kwargs):
            if not dropped:
                dropped.append(self)
                raise ConnectionResetError("broker went away")
            return drain_events(self, **kwargs)

        monkeypatch.setattr(Connection, "drain_events", drop_once)

        settings = memory_settings()
        consumer = AmqpConsumer(
            settings, IngressHandler(ChangeProjector(store)), event_loop=asyncio.get_running_loop()
        )
        await consumer.start()
        try:
            for _ in range(100):
                if dropped:
                    break
                await asyncio.sleep(0.05)

            await asyncio.to_thread(
                publish, settings, [notification_body("CREATE", "/watch_me/after.pdf")]
            )

            for _ in range(200):
                if consumer.workers[0].processed == 1:
                    break
                await asyncio.sleep(0.05)

            assert consumer.is_running
        finally:
            await consumer.stop()

        assert len(dropped) == 1
        assert await store.get(identify("/watch_me/after.pdf", False)) is not None
