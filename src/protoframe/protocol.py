"""Protocol descriptors and message type catalogs.

A ``ProtocolDescriptor`` names the namespace two connectors share.  It may
optionally carry a catalog of ``MessageType`` entries; when present, the
catalog is checked on every outbound call and inbound payloads are validated
against the declared shapes before they reach a handler.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, TypeAlias

from protoframe.errors import UnknownMessageType


__all__ = [
    "Action",
    "MessageType",
    "ProtocolDescriptor",
    "ask_type",
    "tell_type",
]


Action: TypeAlias = Literal["tell", "ask"]

Shape: TypeAlias = type | tuple[type, ...]

TAG_SEPARATOR = "#"


def _accepts(shape: Shape | None, value: Any) -> bool:
    if shape is None:
        return True
    return isinstance(value, shape)


@dataclass(frozen=True)
class MessageType:
    """One entry of a protocol's message type catalog.

    Parameters
    ----------
    action : Action
        ``"tell"`` for notifications, ``"ask"`` for request/response.
    body : type | tuple[type, ...] | None
        Expected body shape. ``None`` accepts anything.
    response : type | tuple[type, ...] | None
        Expected response shape, only meaningful for ask types.

    Examples
    --------
    >>> MessageType("ask", body=dict, response=dict).accepts_body({})
    True
    """

    action: Action
    body: Shape | None = None
    response: Shape | None = None

    def __post_init__(self) -> None:
        if self.action not in ("tell", "ask"):
            msg = f"Unknown action: {self.action!r}"
            raise ValueError(msg)
        if self.action == "tell" and self.response is not None:
            msg = "Tell message types cannot declare a response shape"
            raise ValueError(msg)

    def accepts_body(self, value: Any) -> bool:
        return _accepts(self.body, value)

    def accepts_response(self, value: Any) -> bool:
        return _accepts(self.response, value)


def tell_type(body: Shape | None = None) -> MessageType:
    """Shorthand for ``MessageType("tell", body=body)``."""
    return MessageType("tell", body=body)


def ask_type(body: Shape | None = None, response: Shape | None = None) -> MessageType:
    """Shorthand for ``MessageType("ask", body=body, response=response)``."""
    return MessageType("ask", body=body, response=response)


@dataclass(frozen=True)
class ProtocolDescriptor:
    """Identifies a protocol by namespace, optionally with its message catalog.

    Parameters
    ----------
    namespace : str
        Unique namespace string. Must be non-empty and must not contain ``#``.
    messages : Mapping[str, MessageType]
        Catalog of message types. Empty means "no catalog": any type name is
        accepted and payloads are not validated.

    Examples
    --------
    >>> cache = ProtocolDescriptor(
    ...     "cache",
    ...     messages={"set": tell_type(dict), "get": ask_type(dict, dict)},
    ... )
    >>> cache.lookup("get", "ask").response
    <class 'dict'>
    """

    namespace: str
    messages: Mapping[str, MessageType] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.namespace:
            msg = "Protocol namespace must not be empty"
            raise ValueError(msg)
        if TAG_SEPARATOR in self.namespace:
            msg = f"Protocol namespace must not contain {TAG_SEPARATOR!r}: {self.namespace!r}"
            raise ValueError(msg)
        for name in self.messages:
            if not name:
                msg = "Message type names must not be empty"
                raise ValueError(msg)
        object.__setattr__(self, "messages", MappingProxyType(dict(self.messages)))

    @classmethod
    def of(cls, protocol: ProtocolDescriptor | str) -> ProtocolDescriptor:
        if isinstance(protocol, ProtocolDescriptor):
            return protocol
        return cls(protocol)

    @property
    def has_catalog(self) -> bool:
        return bool(self.messages)

    def lookup(self, name: str, action: Action) -> MessageType | None:
        """Return the catalog entry for *name*, checking it is used as *action*.

        Returns ``None`` when the descriptor has no catalog.

        Raises
        ------
        UnknownMessageType
            If the catalog does not contain *name* or declares another action.
        """
        if not name:
            msg = "Message type names must not be empty"
            raise ValueError(msg)
        if not self.messages:
            return None
        entry = self.messages.get(name)
        if entry is None:
            msg = f"{self.namespace!r} has no message type {name!r}"
            raise UnknownMessageType(msg)
        if entry.action != action:
            msg = f"{self.namespace!r} declares {name!r} as {entry.action!r}, not {action!r}"
            raise UnknownMessageType(msg)
        return entry
