"""Connectors binding one protocol namespace to one transport.

``ProtoframePubsub`` is the full connector: it sends and handles both tells
and asks, and answers liveness pings.  ``ProtoframePublisher`` and
``ProtoframeSubscriber`` are single-role connectors for one-way flows.

Examples
--------
>>> async def main(transport: Transport) -> None:
...     async with ProtoframePubsub("cache", transport) as client:
...         await client.connect()
...         client.tell("set", {"key": "key0", "value": "value"})
...         response = await client.ask("get", {"key": "key0"})
"""

from __future__ import annotations

import logging
from typing import Any, Self

from protoframe.ask import AskChannel, AskHandler
from protoframe.codec import RecordSerializer, get_serializer
from protoframe.config import ProtoframeConfig
from protoframe.protocol import ProtocolDescriptor
from protoframe.registry import ListenerRegistry
from protoframe.system import Liveness
from protoframe.tell import TellChannel, TellHandler
from protoframe.transport import Subscription, Transport


__all__ = ["ProtoframePublisher", "ProtoframePubsub", "ProtoframeSubscriber"]

logger = logging.getLogger("protoframe.pubsub")


class _Connector:
    def __init__(
        self,
        protocol: ProtocolDescriptor | str,
        transport: Transport,
        *,
        config: ProtoframeConfig | None = None,
        serializer: RecordSerializer | None = None,
    ) -> None:
        self._protocol = ProtocolDescriptor.of(protocol)
        self._transport = transport
        self._config = config or ProtoframeConfig()
        self._serializer = serializer or get_serializer(self._config.serialization.serializer)
        self._listeners = ListenerRegistry()

    @property
    def protocol(self) -> ProtocolDescriptor:
        return self._protocol

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def config(self) -> ProtoframeConfig:
        return self._config

    def destroy(self) -> None:
        """Detach every handler this connector registered.

        The transport stays open and asks already in flight keep waiting for
        their response or timeout.  Safe to call more than once.
        """
        self._listeners.destroy()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.destroy()


class ProtoframeSubscriber(_Connector):
    """Receives tells only."""

    def __init__(
        self,
        protocol: ProtocolDescriptor | str,
        transport: Transport,
        *,
        config: ProtoframeConfig | None = None,
        serializer: RecordSerializer | None = None,
    ) -> None:
        super().__init__(protocol, transport, config=config, serializer=serializer)
        self._tells = TellChannel(self._protocol, transport, self._serializer)

    def handle_tell(self, message_type: str, handler: TellHandler) -> Subscription:
        return self._listeners.add(self._tells.handle_tell(message_type, handler))


class ProtoframePublisher(_Connector):
    """Sends tells only."""

    def __init__(
        self,
        protocol: ProtocolDescriptor | str,
        transport: Transport,
        *,
        config: ProtoframeConfig | None = None,
        serializer: RecordSerializer | None = None,
    ) -> None:
        super().__init__(protocol, transport, config=config, serializer=serializer)
        self._tells = TellChannel(self._protocol, transport, self._serializer)

    def tell(self, message_type: str, body: Any) -> None:
        self._tells.tell(message_type, body)


class ProtoframePubsub(_Connector):
    """Bidirectional connector: tell, ask, their handlers, and liveness.

    On construction the connector starts answering pings on
    ``system|<namespace>``, so a peer can ``connect`` to it without any
    application involvement.

    Parameters
    ----------
    protocol : ProtocolDescriptor | str
        Protocol descriptor, or a bare namespace string.
    transport : Transport
        Channel to the peer. Not closed by ``destroy``.
    config : ProtoframeConfig | None
        Defaults for timeouts, retries and serialization.
    serializer : RecordSerializer | None
        Overrides the serializer chosen by ``config``.
    """

    def __init__(
        self,
        protocol: ProtocolDescriptor | str,
        transport: Transport,
        *,
        config: ProtoframeConfig | None = None,
        serializer: RecordSerializer | None = None,
    ) -> None:
        super().__init__(protocol, transport, config=config, serializer=serializer)
        self._tells = TellChannel(self._protocol, transport, self._serializer)
        self._asks = AskChannel(self._protocol, transport, self._serializer)
        self._liveness = Liveness(self._protocol, transport, self._serializer)
        self._listeners.add(self._liveness.answer())

    @classmethod
    async def connected(
        cls,
        protocol: ProtocolDescriptor | str,
        transport: Transport,
        *,
        config: ProtoframeConfig | None = None,
        serializer: RecordSerializer | None = None,
        retries: int | None = None,
        timeout: float | None = None,
    ) -> ProtoframePubsub:
        """Build a connector and wait until the peer answers a ping.

        Raises
        ------
        ConnectionFailed
            If the peer never answers. The connector is destroyed whenever
            the connect fails or is cancelled.
        """
        pubsub = cls(protocol, transport, config=config, serializer=serializer)
        try:
            await pubsub.connect(retries=retries, timeout=timeout)
        except BaseException:
            pubsub.destroy()
            raise
        return pubsub

    def tell(self, message_type: str, body: Any) -> None:
        """Send a fire-and-forget message. Nothing is reported if no one listens."""
        self._tells.tell(message_type, body)

    def handle_tell(self, message_type: str, handler: TellHandler) -> Subscription:
        return self._listeners.add(self._tells.handle_tell(message_type, handler))

    async def ask(self, message_type: str, body: Any, timeout: float | None = None) -> Any:
        """Send an ask and return the peer's response.

        Parameters
        ----------
        message_type : str
            Message type being asked.
        body : Any
            Request body.
        timeout : float | None
            Seconds to wait; defaults to ``config.ask.timeout``.

        Raises
        ------
        AskTimeout
            If no response arrives in time.
        """
        if timeout is None:
            timeout = self._config.ask.timeout
        return await self._asks.ask(message_type, body, timeout)

    def handle_ask(self, message_type: str, handler: AskHandler) -> Subscription:
        """Answer asks of *message_type* with the (awaited) result of *handler*."""
        return self._listeners.add(self._asks.handle_ask(message_type, handler))

    async def ping(self, timeout: float | None = None) -> None:
        """Check that a connector is listening on the other side right now.

        Raises
        ------
        AskTimeout
            If no connector answered within *timeout* (default
            ``config.ping.timeout``).
        """
        if timeout is None:
            timeout = self._config.ping.timeout
        await self._liveness.ping(timeout)

    async def connect(self, retries: int | None = None, timeout: float | None = None) -> None:
        """Ping until the peer answers; see ``Liveness.connect``."""
        if retries is None:
            retries = self._config.connect.retries
        if timeout is None:
            timeout = self._config.connect.timeout
        await self._liveness.connect(retries, timeout)

    def destroy(self) -> None:
        if len(self._listeners):
            logger.debug("Destroying connector for %s", self._protocol.namespace)
        super().destroy()
