"""Structural matching of decoded records against a namespace and message type."""

from __future__ import annotations

from protoframe.codec import WireRecord, parse_tag
from protoframe.errors import MalformedRecord
from protoframe.protocol import Action


__all__ = ["matches_body", "matches_response"]


def _tag_equals(record: WireRecord, namespace: str, action: str, message_type: str) -> bool:
    try:
        return parse_tag(record.tag) == (namespace, action, message_type)
    except MalformedRecord:
        return False


def matches_body(
    namespace: str,
    action: Action,
    message_type: str,
    record: WireRecord | None,
) -> bool:
    """True iff *record* carries a body tagged ``namespace#action#message_type``."""
    if record is None or not record.has_body:
        return False
    return _tag_equals(record, namespace, action, message_type)


def matches_response(namespace: str, message_type: str, record: WireRecord | None) -> bool:
    """True iff *record* carries a response tagged ``namespace#ask#message_type``."""
    if record is None or not record.has_response:
        return False
    return _tag_equals(record, namespace, "ask", message_type)
