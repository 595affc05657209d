"""Wire record encoding and decoding.

A wire record pairs a ``'#'``-joined tag with either a body or a response::

    {"type": "cache#ask#get", "body": {"key": "key0"}, "id": "3f2a..."}
    {"type": "cache#ask#get", "response": {"value": null}, "id": "3f2a..."}

The tag is ``<namespace>#<action>#<message type>``; responses always use the
``ask`` action.  The optional ``id`` correlates a response with the ask that
produced it.  Records travel as UTF-8 JSON (``JsonSerializer``) or
MessagePack (``MsgpackSerializer``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypeAlias, runtime_checkable

import msgpack

from protoframe.errors import MalformedRecord
from protoframe.protocol import TAG_SEPARATOR, Action


__all__ = [
    "JsonSerializer",
    "MsgpackSerializer",
    "RecordSerializer",
    "SerializerKind",
    "WireRecord",
    "decode",
    "encode_body",
    "encode_response",
    "get_serializer",
    "make_tag",
    "parse_tag",
]

logger = logging.getLogger("protoframe.codec")

SerializerKind: TypeAlias = Literal["json", "msgpack"]

_MISSING: Any = object()

# Key names on the wire.
_TAG = "type"
_BODY = "body"
_RESPONSE = "response"
_ID = "id"


def make_tag(namespace: str, action: Action, message_type: str) -> str:
    return f"{namespace}{TAG_SEPARATOR}{action}{TAG_SEPARATOR}{message_type}"


def parse_tag(tag: str) -> tuple[str, str, str]:
    """Split a tag on its first two separators.

    Raises
    ------
    MalformedRecord
        If the tag has fewer than three components.

    Examples
    --------
    >>> parse_tag("cache#ask#get")
    ('cache', 'ask', 'get')
    """
    parts = tag.split(TAG_SEPARATOR, 2)
    if len(parts) != 3:
        msg = f"Tag {tag!r} does not have three components"
        raise MalformedRecord(msg)
    namespace, action, message_type = parts
    return namespace, action, message_type


@dataclass(frozen=True)
class WireRecord:
    """The unit exchanged over a transport.

    Exactly one of ``body`` / ``response`` is set; an unset payload is held
    as an internal sentinel so that ``None`` remains a legal payload value.
    Use ``has_body`` / ``has_response`` to tell them apart.
    """

    tag: str
    body: Any = _MISSING
    response: Any = _MISSING
    id: str | None = None

    @property
    def has_body(self) -> bool:
        return self.body is not _MISSING

    @property
    def has_response(self) -> bool:
        return self.response is not _MISSING

    @property
    def parts(self) -> tuple[str, str, str]:
        return parse_tag(self.tag)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {_TAG: self.tag}
        if self.has_body:
            data[_BODY] = self.body
        if self.has_response:
            data[_RESPONSE] = self.response
        if self.id is not None:
            data[_ID] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Any) -> WireRecord:
        """Build a record from a decoded document.

        Raises
        ------
        MalformedRecord
            If *data* is not a mapping, has no string tag, a tag with fewer
            than three components, or neither a body nor a response.
        """
        if not isinstance(data, dict):
            msg = f"Expected a mapping, got {type(data).__name__}"
            raise MalformedRecord(msg)
        tag = data.get(_TAG)
        if not isinstance(tag, str):
            msg = "Record has no string tag"
            raise MalformedRecord(msg)
        parse_tag(tag)
        body = data.get(_BODY, _MISSING)
        response = data.get(_RESPONSE, _MISSING)
        if body is _MISSING and response is _MISSING:
            msg = f"Record {tag!r} carries neither a body nor a response"
            raise MalformedRecord(msg)
        correlation_id = data.get(_ID)
        if correlation_id is not None and not isinstance(correlation_id, str):
            correlation_id = None
        return cls(tag=tag, body=body, response=response, id=correlation_id)


def encode_body(
    namespace: str,
    action: Action,
    message_type: str,
    body: Any,
    *,
    id: str | None = None,
) -> WireRecord:
    return WireRecord(tag=make_tag(namespace, action, message_type), body=body, id=id)


def encode_response(
    namespace: str,
    message_type: str,
    response: Any,
    *,
    id: str | None = None,
) -> WireRecord:
    return WireRecord(tag=make_tag(namespace, "ask", message_type), response=response, id=id)


@runtime_checkable
class RecordSerializer(Protocol):
    def serialize(self, record: WireRecord) -> bytes: ...
    def deserialize(self, data: bytes | str) -> WireRecord: ...


class JsonSerializer:
    """UTF-8 JSON encoding of wire records.

    Examples
    --------
    >>> ser = JsonSerializer()
    >>> ser.serialize(encode_body("cache", "tell", "set", {"key": "k"}))
    b'{"type": "cache#tell#set", "body": {"key": "k"}}'
    """

    def serialize(self, record: WireRecord) -> bytes:
        return json.dumps(record.to_dict()).encode("utf-8")

    def deserialize(self, data: bytes | str) -> WireRecord:
        try:
            document = json.loads(data)
        except (ValueError, TypeError, RecursionError) as exc:
            msg = f"Invalid JSON record: {exc}"
            raise MalformedRecord(msg) from exc
        return WireRecord.from_dict(document)


class MsgpackSerializer:
    """MessagePack encoding of wire records.

    Compact binary output; payloads may contain ``bytes`` values, which JSON
    cannot carry.
    """

    def serialize(self, record: WireRecord) -> bytes:
        return msgpack.packb(record.to_dict(), use_bin_type=True)

    def deserialize(self, data: bytes | str) -> WireRecord:
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            document = msgpack.unpackb(data, raw=False)
        except (ValueError, TypeError, RecursionError, msgpack.UnpackException) as exc:
            msg = f"Invalid MessagePack record: {exc}"
            raise MalformedRecord(msg) from exc
        return WireRecord.from_dict(document)


def get_serializer(kind: SerializerKind) -> RecordSerializer:
    match kind:
        case "json":
            return JsonSerializer()
        case "msgpack":
            return MsgpackSerializer()
        case _:
            msg = f"Unknown serializer: {kind!r}"
            raise ValueError(msg)


def decode(data: bytes | str, serializer: RecordSerializer) -> WireRecord | None:
    """Decode *data* into a record, or return ``None`` if it is not one.

    Never raises: transports may carry unrelated traffic, which simply does
    not match anything.
    """
    try:
        return serializer.deserialize(data)
    except MalformedRecord as exc:
        logger.debug("Ignoring malformed record: %s", exc)
        return None
