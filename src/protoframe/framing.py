"""Message framing for byte-stream transports.

Stream sockets deliver arbitrary chunks; ``FrameDecoder`` reassembles them
into whole records using a 4-byte big-endian length prefix.
"""

from __future__ import annotations

import struct

from protoframe.errors import MalformedRecord


HEADER = struct.Struct("!I")

# Upper bound for a single record; larger lengths mean a corrupt stream.
MAX_FRAME_SIZE = 16 * 1024 * 1024


def encode_frame(data: bytes) -> bytes:
    if len(data) > MAX_FRAME_SIZE:
        msg = f"Frame of {len(data)} bytes exceeds limit of {MAX_FRAME_SIZE}"
        raise ValueError(msg)
    return HEADER.pack(len(data)) + data


class FrameDecoder:
    """Incremental decoder for length-prefixed frames.

    Examples
    --------
    >>> decoder = FrameDecoder()
    >>> data = encode_frame(b"abc") + encode_frame(b"de")
    >>> decoder.feed(data[:5])
    []
    >>> decoder.feed(data[5:])
    [b'abc', b'de']
    """

    def __init__(self, max_frame_size: int = MAX_FRAME_SIZE) -> None:
        self._buffer = bytearray()
        self._max_frame_size = max_frame_size

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet forming a complete frame."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[bytes]:
        self._buffer.extend(data)
        frames: list[bytes] = []
        while len(self._buffer) >= HEADER.size:
            (length,) = HEADER.unpack_from(self._buffer)
            if length > self._max_frame_size:
                msg = f"Frame length {length} exceeds limit of {self._max_frame_size}"
                raise MalformedRecord(msg)
            end = HEADER.size + length
            if len(self._buffer) < end:
                break
            frames.append(bytes(self._buffer[HEADER.size : end]))
            del self._buffer[:end]
        return frames
