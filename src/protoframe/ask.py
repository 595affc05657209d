"""Request/response delivery with timeouts.

Every outbound ask is tracked as a ``PendingAsk`` that races two completion
sources: a matching response arriving on the transport, and a timer armed
for the ask's timeout.  Whichever fires first settles the ask and disarms
the other; the ``settled`` flag makes that a one-shot transition.

Requests carry a correlation ``id`` that handlers echo on their response, so
concurrent asks of the same type each receive their own answer.  Responses
without an ``id`` fall back to resolving the oldest pending ask of that type.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from protoframe.codec import RecordSerializer, WireRecord, decode, encode_body, encode_response
from protoframe.errors import AskTimeout
from protoframe.matcher import matches_body, matches_response
from protoframe.protocol import MessageType, ProtocolDescriptor
from protoframe.transport import Subscription, Transport


__all__ = ["DEFAULT_ASK_TIMEOUT", "AskChannel", "AskHandler", "PendingAsk"]

logger = logging.getLogger("protoframe.ask")

DEFAULT_ASK_TIMEOUT = 10.0

AskHandler: TypeAlias = Callable[[Any], Awaitable[Any] | Any]


@dataclass(eq=False)
class PendingAsk:
    """One outstanding ask awaiting its response or its timeout."""

    id: str
    message_type: str
    future: asyncio.Future[Any]
    started: float
    timeout: float
    entry: MessageType | None = None
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)
    settled: bool = False


class AskChannel:
    """Sends asks and answers inbound asks for one protocol on one transport.

    Parameters
    ----------
    protocol : ProtocolDescriptor
        Namespace (and optional catalog) this channel speaks.
    transport : Transport
        Channel used for sending and subscriptions.
    serializer : RecordSerializer
        Wire encoding shared with the peer.

    Notes
    -----
    The channel subscribes to the transport for responses only while at
    least one ask is pending.  That subscription belongs to the channel, not
    to the connector's registry: destroying a connector leaves pending asks
    to finish against their own timers.
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
        self._pending: dict[str, PendingAsk] = {}
        self._response_subscription: Subscription | None = None
        self._handler_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def listening(self) -> bool:
        """Whether the response subscription is currently attached."""
        return self._response_subscription is not None

    async def ask(
        self,
        message_type: str,
        body: Any,
        timeout: float = DEFAULT_ASK_TIMEOUT,
    ) -> Any:
        """Send one ask and wait for its response.

        Raises
        ------
        AskTimeout
            If no matching response arrives within *timeout* seconds.  Late
            responses are ignored; the request is never re-sent.
        """
        if timeout <= 0:
            msg = f"timeout must be positive, got {timeout}"
            raise ValueError(msg)
        entry = self._protocol.lookup(message_type, "ask")
        loop = asyncio.get_running_loop()
        pending = PendingAsk(
            id=uuid.uuid4().hex,
            message_type=message_type,
            future=loop.create_future(),
            started=loop.time(),
            timeout=timeout,
            entry=entry,
        )
        self._track(pending)
        pending.timer = loop.call_later(timeout, self._expire, pending)
        try:
            record = encode_body(
                self._protocol.namespace, "ask", message_type, body, id=pending.id
            )
            logger.debug("ask %s id=%s timeout=%.3fs", record.tag, pending.id, timeout)
            self._transport.send(self._serializer.serialize(record))
            return await pending.future
        finally:
            self._forget(pending)

    def handle_ask(self, message_type: str, handler: AskHandler) -> Subscription:
        """Answer inbound asks of *message_type* with *handler*'s result.

        *handler* receives the request body and may be a coroutine function or
        return an awaitable.  It runs in its own task; if it raises, no
        response is sent (the asker times out) and the exception goes to the
        event loop's exception handler.
        """
        entry = self._protocol.lookup(message_type, "ask")
        namespace = self._protocol.namespace
        serializer = self._serializer

        def _listener(data: bytes | str) -> None:
            record = decode(data, serializer)
            if record is None or not matches_body(namespace, "ask", message_type, record):
                return
            if entry is not None and not entry.accepts_body(record.body):
                logger.debug("Ignoring %s with unexpected body shape", record.tag)
                return
            task = asyncio.get_running_loop().create_task(
                self._answer(message_type, handler, record, entry)
            )
            self._handler_tasks.add(task)
            task.add_done_callback(self._handler_done)

        return self._transport.on_message(_listener)

    async def _answer(
        self,
        message_type: str,
        handler: AskHandler,
        request: WireRecord,
        entry: MessageType | None,
    ) -> None:
        result = handler(request.body)
        if inspect.isawaitable(result):
            result = await result
        if entry is not None and not entry.accepts_response(result):
            logger.warning(
                "Handler for %r returned %s, which does not match the declared response shape",
                message_type,
                type(result).__name__,
            )
        response = encode_response(
            self._protocol.namespace, message_type, result, id=request.id
        )
        self._transport.send(self._serializer.serialize(response))

    def _handler_done(self, task: asyncio.Task[None]) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            task.get_loop().call_exception_handler({
                "message": "Unhandled exception in ask handler",
                "exception": exc,
                "task": task,
            })

    def _track(self, pending: PendingAsk) -> None:
        self._pending[pending.id] = pending
        if self._response_subscription is None:
            self._response_subscription = self._transport.on_message(self._on_response)

    def _forget(self, pending: PendingAsk) -> None:
        if pending.timer is not None:
            pending.timer.cancel()
        self._pending.pop(pending.id, None)
        if not self._pending and self._response_subscription is not None:
            self._response_subscription.detach()
            self._response_subscription = None

    def _match(self, record: WireRecord) -> PendingAsk | None:
        namespace = self._protocol.namespace
        if record.id is not None:
            pending = self._pending.get(record.id)
            if pending is not None and matches_response(namespace, pending.message_type, record):
                return pending
            return None
        for pending in self._pending.values():
            if matches_response(namespace, pending.message_type, record):
                return pending
        return None

    def _on_response(self, data: bytes | str) -> None:
        record = decode(data, self._serializer)
        if record is None or not record.has_response:
            return
        pending = self._match(record)
        if pending is None:
            return
        if pending.entry is not None and not pending.entry.accepts_response(record.response):
            logger.debug("Ignoring %s with unexpected response shape", record.tag)
            return
        self._resolve(pending, record.response)

    def _resolve(self, pending: PendingAsk, response: Any) -> None:
        if pending.settled:
            return
        pending.settled = True
        self._forget(pending)
        if not pending.future.done():
            logger.debug("ask %s id=%s resolved", pending.message_type, pending.id)
            pending.future.set_result(response)

    def _expire(self, pending: PendingAsk) -> None:
        if pending.settled:
            return
        pending.settled = True
        self._forget(pending)
        if not pending.future.done():
            elapsed = pending.future.get_loop().time() - pending.started
            logger.debug("ask %s id=%s timed out after %.3fs", pending.message_type, pending.id, elapsed)
            pending.future.set_exception(
                AskTimeout(pending.message_type, timeout=pending.timeout, elapsed=elapsed)
            )
