"""Transport contract and bundled transports.

A connector only needs a full-duplex channel with a non-blocking ``send``
and a way to subscribe to (and later detach from) inbound messages.  Any
object with ``send``, ``on_message``, ``remove_subscription`` and ``close``
satisfies ``Transport``.

Two implementations ship with the package:

- ``MemoryTransport`` -- a linked in-process pair, delivering on the next
  event loop iteration like a socket would.
- ``StreamTransport`` -- asyncio streams (TCP, optionally TLS) carrying
  length-prefixed frames.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, runtime_checkable

from protoframe.errors import MalformedRecord, TransportClosed
from protoframe.framing import MAX_FRAME_SIZE, FrameDecoder, encode_frame


__all__ = [
    "BaseTransport",
    "MemoryTransport",
    "MessageCallback",
    "StreamTransport",
    "Subscription",
    "Transport",
    "serve",
]

logger = logging.getLogger("protoframe.transport")

MessageCallback: TypeAlias = Callable[[bytes | str], None]

READ_CHUNK = 65536


@dataclass(frozen=True, eq=False)
class Subscription:
    """Handle for one inbound-message subscription on a transport.

    Compared by identity, so registering the same callback twice yields two
    independent subscriptions.
    """

    transport: Transport = field(repr=False)
    callback: MessageCallback

    def detach(self) -> None:
        self.transport.remove_subscription(self)


@runtime_checkable
class Transport(Protocol):
    """Full-duplex message channel used by connectors.

    Examples
    --------
    Minimal implementation that discards everything:

    >>> class NullTransport:
    ...     def send(self, data: bytes | str) -> None:
    ...         pass
    ...     def on_message(self, callback: MessageCallback) -> Subscription:
    ...         return Subscription(self, callback)
    ...     def remove_subscription(self, subscription: Subscription) -> None:
    ...         pass
    ...     def close(self) -> None:
    ...         pass
    """

    def send(self, data: bytes | str) -> None:
        """Hand *data* to the channel without waiting for delivery."""
        ...

    def on_message(self, callback: MessageCallback) -> Subscription:
        """Invoke *callback* for every inbound message until detached."""
        ...

    def remove_subscription(self, subscription: Subscription) -> None:
        """Detach *subscription*; unknown or already removed handles are ignored."""
        ...

    def close(self) -> None: ...


class BaseTransport:
    """Subscription bookkeeping and dispatch shared by the bundled transports.

    Callbacks run in registration order.  A callback that raises is reported
    to the event loop's exception handler and does not prevent the remaining
    callbacks from seeing the message.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[Subscription, None] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def on_message(self, callback: MessageCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions[subscription] = None
        return subscription

    def remove_subscription(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription, None)

    def _deliver(self, data: bytes | str) -> None:
        if self._closed:
            return
        for subscription in list(self._subscriptions):
            # Detached by an earlier callback for this same message.
            if subscription not in self._subscriptions:
                continue
            try:
                subscription.callback(data)
            except Exception as exc:
                asyncio.get_running_loop().call_exception_handler({
                    "message": "Unhandled exception in message callback",
                    "exception": exc,
                    "transport": self,
                })


class MemoryTransport(BaseTransport):
    """One end of an in-process channel.

    Use ``MemoryTransport.pair()`` to get two linked ends.  Messages sent on
    one end are delivered to the other on the next loop iteration; messages
    sent while the other end is closed are dropped.

    Examples
    --------
    >>> left, right = MemoryTransport.pair()
    >>> sub = right.on_message(print)
    >>> # left.send(b"hello")  -> right prints b'hello' on the next loop tick
    """

    def __init__(self) -> None:
        super().__init__()
        self._peer: MemoryTransport | None = None

    @classmethod
    def pair(cls) -> tuple[MemoryTransport, MemoryTransport]:
        left, right = cls(), cls()
        left._peer = right
        right._peer = left
        return left, right

    def send(self, data: bytes | str) -> None:
        if self._closed:
            msg = "Cannot send on a closed transport"
            raise TransportClosed(msg)
        peer = self._peer
        if peer is None or peer.closed:
            logger.debug("Dropping %d bytes, peer is gone", len(data))
            return
        asyncio.get_running_loop().call_soon(peer._deliver, data)

    def close(self) -> None:
        self._closed = True


class StreamTransport(BaseTransport):
    """Length-prefixed frames over an asyncio stream pair.

    Must be created inside a running event loop: construction starts a
    background task that reads frames and dispatches them to subscribers.

    Parameters
    ----------
    reader : asyncio.StreamReader
    writer : asyncio.StreamWriter
    max_frame_size : int
        Frames announcing a larger length close the connection.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        max_frame_size: int = MAX_FRAME_SIZE,
    ) -> None:
        super().__init__()
        self._reader = reader
        self._writer = writer
        self._decoder = FrameDecoder(max_frame_size)
        self._read_task = asyncio.get_running_loop().create_task(self._read_loop())

    @classmethod
    async def open(
        cls,
        host: str,
        port: int,
        *,
        ssl_context: ssl.SSLContext | None = None,
        connect_timeout: float | None = None,
    ) -> StreamTransport:
        """Dial ``host:port`` and wrap the connection."""
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port, ssl=ssl_context),
            timeout=connect_timeout,
        )
        logger.debug("Connected to %s:%d", host, port)
        return cls(reader, writer)

    @property
    def peername(self) -> Any:
        return self._writer.get_extra_info("peername")

    def send(self, data: bytes | str) -> None:
        if self._closed:
            msg = "Cannot send on a closed transport"
            raise TransportClosed(msg)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._writer.write(encode_frame(data))

    async def _read_loop(self) -> None:
        try:
            while True:
                chunk = await self._reader.read(READ_CHUNK)
                if not chunk:
                    logger.debug("Peer %s closed the connection", self.peername)
                    return
                for frame in self._decoder.feed(chunk):
                    self._deliver(frame)
        except (OSError, MalformedRecord) as exc:
            logger.warning("Connection to %s failed: %s", self.peername, exc)
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._read_task is not asyncio.current_task():
            self._read_task.cancel()
        self._writer.close()

    async def wait_closed(self) -> None:
        """Close the transport and wait for the connection to shut down."""
        self.close()
        try:
            await self._read_task
        except asyncio.CancelledError:
            pass
        try:
            await self._writer.wait_closed()
        except OSError:
            pass


async def serve(
    host: str,
    port: int,
    on_transport: Callable[[StreamTransport], None],
    *,
    ssl_context: ssl.SSLContext | None = None,
) -> asyncio.Server:
    """Listen on ``host:port`` and hand every accepted connection to *on_transport*.

    *on_transport* runs before any inbound frame is dispatched, so
    subscriptions it registers see the first message.
    """

    async def _accept(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        transport = StreamTransport(reader, writer)
        logger.debug("Accepted connection from %s", transport.peername)
        on_transport(transport)

    return await asyncio.start_server(_accept, host, port, ssl=ssl_context)
