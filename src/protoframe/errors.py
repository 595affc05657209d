"""Exception hierarchy for protoframe connectors.

Timeouts and connection failures surface to callers as raised exceptions.
``MalformedRecord`` is only raised by the strict parsing helpers in
``protoframe.codec``; ``decode`` swallows it so unrelated traffic sharing a
transport never reaches application code.
"""

from __future__ import annotations


__all__ = [
    "AskTimeout",
    "ConnectionFailed",
    "MalformedRecord",
    "ProtoframeError",
    "TransportClosed",
    "UnknownMessageType",
]


class ProtoframeError(Exception):
    """Base class for every error raised by protoframe."""


class AskTimeout(ProtoframeError, TimeoutError):
    """An ask (or ping) received no matching response before its deadline.

    Parameters
    ----------
    message_type : str
        The message type that was asked.
    timeout : float
        Configured deadline in seconds.
    elapsed : float
        Seconds actually spent waiting.

    Examples
    --------
    >>> err = AskTimeout("get", timeout=0.05, elapsed=0.051)
    >>> err.message_type
    'get'
    """

    def __init__(self, message_type: str, *, timeout: float, elapsed: float) -> None:
        self.message_type = message_type
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(
            f"No response to {message_type!r} within {timeout:.3f}s "
            f"(waited {elapsed:.3f}s)"
        )


class ConnectionFailed(ProtoframeError, ConnectionError):
    """Connect-with-retry exhausted its retry budget without a ping answer."""

    def __init__(self, *, retries: int, elapsed: float) -> None:
        self.retries = retries
        self.elapsed = elapsed
        super().__init__(
            f"Peer did not answer after {retries} ping attempts ({elapsed:.3f}s)"
        )


class MalformedRecord(ProtoframeError, ValueError):
    """Inbound data could not be decoded into a wire record."""


class UnknownMessageType(ProtoframeError, KeyError):
    """A message type is missing from the protocol catalog or used with the wrong action."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class TransportClosed(ProtoframeError):
    """``send`` was called on a transport that has already been closed."""
