from __future__ import annotations

import pytest

from protoframe.errors import MalformedRecord
from protoframe.framing import FrameDecoder, encode_frame


def test_encode_frame_prefixes_length() -> None:
    assert encode_frame(b"abc") == b"\x00\x00\x00\x03abc"


def test_decoder_reassembles_split_frames() -> None:
    decoder = FrameDecoder()
    data = encode_frame(b"hello") + encode_frame(b"") + encode_frame(b"world")

    frames: list[bytes] = []
    for i in range(len(data)):
        frames.extend(decoder.feed(data[i : i + 1]))

    assert frames == [b"hello", b"", b"world"]
    assert decoder.pending == 0


def test_decoder_keeps_partial_frame() -> None:
    decoder = FrameDecoder()
    assert decoder.feed(encode_frame(b"abcdef")[:6]) == []
    assert decoder.pending == 6


def test_decoder_rejects_oversized_frame() -> None:
    decoder = FrameDecoder(max_frame_size=4)
    with pytest.raises(MalformedRecord):
        decoder.feed(encode_frame(b"12345"))


def test_encode_rejects_oversized_frame(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("protoframe.framing.MAX_FRAME_SIZE", 2)
    with pytest.raises(ValueError):
        encode_frame(b"abc")
