"""Tests for wire record encoding and decoding."""

from __future__ import annotations

import json

import msgpack
import pytest

from protoframe.codec import (
    JsonSerializer,
    MsgpackSerializer,
    WireRecord,
    decode,
    encode_body,
    encode_response,
    get_serializer,
    make_tag,
    parse_tag,
)
from protoframe.errors import MalformedRecord


SERIALIZERS = [JsonSerializer(), MsgpackSerializer()]


class TestTags:
    def test_make_tag(self) -> None:
        assert make_tag("cache", "tell", "set") == "cache#tell#set"

    def test_parse_tag(self) -> None:
        assert parse_tag("cache#ask#get") == ("cache", "ask", "get")

    def test_parse_tag_splits_on_first_two_separators(self) -> None:
        assert parse_tag("cache#ask#get#extra") == ("cache", "ask", "get#extra")

    @pytest.mark.parametrize("tag", ["", "cache", "cache#ask"])
    def test_parse_tag_too_few_components(self, tag: str) -> None:
        with pytest.raises(MalformedRecord):
            parse_tag(tag)


class TestEncode:
    def test_encode_body(self) -> None:
        record = encode_body("cache", "tell", "set", {"key": "k", "value": "v"})
        assert record.tag == "cache#tell#set"
        assert record.body == {"key": "k", "value": "v"}
        assert record.has_body
        assert not record.has_response
        assert record.id is None

    def test_encode_response_always_uses_ask(self) -> None:
        record = encode_response("cache", "get", {"value": None}, id="abc")
        assert record.tag == "cache#ask#get"
        assert record.response == {"value": None}
        assert record.has_response
        assert not record.has_body
        assert record.id == "abc"

    def test_to_dict_omits_unset_fields(self) -> None:
        assert encode_body("p", "tell", "t", 1).to_dict() == {"type": "p#tell#t", "body": 1}

    def test_none_is_a_legal_payload(self) -> None:
        record = encode_response("p", "t", None)
        assert record.has_response
        assert record.to_dict() == {"type": "p#ask#t", "response": None}

    def test_json_wire_form(self) -> None:
        data = JsonSerializer().serialize(encode_body("cache", "ask", "get", {"key": "k"}, id="1"))
        assert json.loads(data) == {"type": "cache#ask#get", "body": {"key": "k"}, "id": "1"}


class TestRoundTrip:
    @pytest.mark.parametrize("serializer", SERIALIZERS, ids=["json", "msgpack"])
    @pytest.mark.parametrize(
        ("namespace", "action", "message_type"),
        [("cache", "tell", "set"), ("system|cache", "ask", "ping"), ("a.b", "ask", "x#y")],
    )
    def test_body(self, serializer, namespace, action, message_type) -> None:
        body = {"key": "key0", "nested": [1, 2.5, None, True, {"deep": "value"}]}
        record = encode_body(namespace, action, message_type, body, id="abc")

        decoded = decode(serializer.serialize(record), serializer)

        assert decoded == record
        assert decoded.parts == (namespace, action, message_type)

    @pytest.mark.parametrize("serializer", SERIALIZERS, ids=["json", "msgpack"])
    def test_response(self, serializer) -> None:
        record = encode_response("cache", "get", {"value": None})
        assert decode(serializer.serialize(record), serializer) == record

    def test_msgpack_carries_bytes(self) -> None:
        serializer = MsgpackSerializer()
        record = encode_body("blob", "tell", "put", {"data": b"\x00\x01"})
        assert decode(serializer.serialize(record), serializer).body == {"data": b"\x00\x01"}

    def test_json_accepts_text(self) -> None:
        serializer = JsonSerializer()
        decoded = decode('{"type": "p#tell#t", "body": {}}', serializer)
        assert decoded == WireRecord(tag="p#tell#t", body={})


class TestDecodeNeverRaises:
    @pytest.mark.parametrize(
        "data",
        [
            b"not json",
            b"\xff\xfe",
            b"[1, 2, 3]",
            b'"just a string"',
            b"{}",
            b'{"type": 42, "body": {}}',
            b'{"type": "cache#tell", "body": {}}',
            b'{"type": "cache#tell#set"}',
            b"[" * 100000 + b"]" * 100000,
        ],
    )
    def test_json(self, data: bytes) -> None:
        assert decode(data, JsonSerializer()) is None

    @pytest.mark.parametrize(
        "data",
        [
            b"\xc1",
            msgpack.packb([1, 2]),
            msgpack.packb({"type": "cache#ask"}),
            msgpack.packb({"body": {}}),
            b"\x91" * 100000 + b"\xc0",
        ],
    )
    def test_msgpack(self, data: bytes) -> None:
        assert decode(data, MsgpackSerializer()) is None

    def test_non_string_id_is_dropped(self) -> None:
        decoded = decode(b'{"type": "p#ask#t", "response": 1, "id": 7}', JsonSerializer())
        assert decoded is not None
        assert decoded.id is None

    def test_strict_deserialize_raises(self) -> None:
        with pytest.raises(MalformedRecord):
            JsonSerializer().deserialize(b"{}")


class TestGetSerializer:
    def test_known(self) -> None:
        assert isinstance(get_serializer("json"), JsonSerializer)
        assert isinstance(get_serializer("msgpack"), MsgpackSerializer)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown serializer"):
            get_serializer("pickle")  # type: ignore[arg-type]
