"""Message ingress: decoding, dispatch and the AMQP consumer."""

from watchmirror.ingress.handler import AckPolicy, Disposition, IngressHandler
from watchmirror.ingress.worker import BindingWorker
from watchmirror.ingress.consumer import AmqpConsumer

__all__ = [
    "AckPolicy",
    "Disposition",
    "IngressHandler",
    "BindingWorker",
    "AmqpConsumer",
]
