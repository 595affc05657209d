"""Fire-and-forget notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from protoframe.codec import RecordSerializer, decode, encode_body
from protoframe.matcher import matches_body
from protoframe.protocol import ProtocolDescriptor
from protoframe.transport import Subscription, Transport


__all__ = ["TellChannel", "TellHandler"]

logger = logging.getLogger("protoframe.tell")

TellHandler: TypeAlias = Callable[[Any], None]


class TellChannel:
    """Sends and receives ``tell`` records for one protocol on one transport.

    ``tell`` never waits and reports nothing when no one is listening.
    Every ``handle_tell`` registration is independent: all handlers whose
    type matches fire for each inbound record.
    """

    def __init__(
        self,
        protocol: ProtocolDescriptor,
        transport: Transport,
        serializer: RecordSerializer,
    ) -> None:
        self._protocol = protocol
        self._transport = transport
        self._serializer = serializer

    def tell(self, message_type: str, body: Any) -> None:
        self._protocol.lookup(message_type, "tell")
        record = encode_body(self._protocol.namespace, "tell", message_type, body)
        logger.debug("tell %s", record.tag)
        self._transport.send(self._serializer.serialize(record))

    def handle_tell(self, message_type: str, handler: TellHandler) -> Subscription:
        """Subscribe *handler* to ``tell`` records of *message_type*.

        The handler runs synchronously inside the transport's dispatch; its
        exceptions are not caught here.
        """
        entry = self._protocol.lookup(message_type, "tell")
        namespace = self._protocol.namespace
        serializer = self._serializer

        def _listener(data: bytes | str) -> None:
            record = decode(data, serializer)
            if record is None or not matches_body(namespace, "tell", message_type, record):
                return
            if entry is not None and not entry.accepts_body(record.body):
                logger.debug("Ignoring %s with unexpected body shape", record.tag)
                return
            handler(record.body)

        return self._transport.on_message(_listener)
