"""Liveness sub-protocol and connect-with-retry.

Each connector answers ``ping`` asks on a private namespace derived from its
protocol (``system|<namespace>``), so liveness probes never collide with
application message types.  A successful ping only proves that a listener
was attached when the probe was answered; nothing is buffered for peers
that are not up yet, hence ``connect`` retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from protoframe.ask import AskChannel
from protoframe.codec import RecordSerializer
from protoframe.errors import AskTimeout, ConnectionFailed
from protoframe.protocol import ProtocolDescriptor, ask_type
from protoframe.transport import Subscription, Transport


__all__ = [
    "DEFAULT_CONNECT_RETRIES",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_PING_TIMEOUT",
    "PING",
    "SYSTEM_PREFIX",
    "Liveness",
    "system_protocol",
]

logger = logging.getLogger("protoframe.system")

SYSTEM_PREFIX = "system|"
PING = "ping"

DEFAULT_PING_TIMEOUT = 10.0
DEFAULT_CONNECT_RETRIES = 50
DEFAULT_CONNECT_TIMEOUT = 0.5


def system_protocol(protocol: ProtocolDescriptor) -> ProtocolDescriptor:
    """
    Examples
    --------
    >>> system_protocol(ProtocolDescriptor("cache")).namespace
    'system|cache'
    """
    return ProtocolDescriptor(
        f"{SYSTEM_PREFIX}{protocol.namespace}",
        messages={PING: ask_type(body=dict, response=dict)},
    )


async def _pong(body: Any) -> dict[str, Any]:
    return {}


class Liveness:
    """Ping answering and probing for one protocol on one transport."""

    def __init__(
        self,
        protocol: ProtocolDescriptor,
        transport: Transport,
        serializer: RecordSerializer,
    ) -> None:
        self.protocol = system_protocol(protocol)
        self._channel = AskChannel(self.protocol, transport, serializer)

    def answer(self) -> Subscription:
        """Start answering pings; detach the returned subscription to stop."""
        return self._channel.handle_ask(PING, _pong)

    async def ping(self, timeout: float = DEFAULT_PING_TIMEOUT) -> None:
        await self._channel.ask(PING, {}, timeout)

    async def connect(
        self,
        retries: int = DEFAULT_CONNECT_RETRIES,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """Ping until the peer answers, at most *retries* times.

        Raises
        ------
        ConnectionFailed
            If none of the attempts was answered.
        """
        if retries < 1:
            msg = f"retries must be at least 1, got {retries}"
            raise ValueError(msg)
        loop = asyncio.get_running_loop()
        started = loop.time()
        for attempt in range(1, retries + 1):
            try:
                await self.ping(timeout)
            except AskTimeout as exc:
                logger.debug(
                    "%s ping attempt %d/%d failed (%s)",
                    self.protocol.namespace,
                    attempt,
                    retries,
                    exc,
                )
                continue
            logger.debug("%s connected after %d attempt(s)", self.protocol.namespace, attempt)
            return
        elapsed = loop.time() - started
        logger.warning(
            "%s: no peer answered %d pings in %.3fs", self.protocol.namespace, retries, elapsed
        )
        raise ConnectionFailed(retries=retries, elapsed=elapsed)
