"""Little-endian binary primitives for session snapshots.

Layout follows the .NET ``BinaryWriter`` conventions so snapshots stay
readable by older tooling: fixed-width little-endian integers and floats,
strings prefixed with their UTF-8 byte length as a 7-bit varint.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from imgevolve.exceptions import SnapshotReadError

__all__ = ["BinaryReader", "BinaryWriter"]

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_FLOAT32 = struct.Struct("<f")
_FLOAT64 = struct.Struct("<d")


class BinaryWriter:
    """Writes primitives to a binary stream. Stream errors propagate unchanged."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def write_int32(self, value: int) -> None:
        self.stream.write(_INT32.pack(value))

    def write_int64(self, value: int) -> None:
        self.stream.write(_INT64.pack(value))

    def write_float32(self, value: float) -> None:
        self.stream.write(_FLOAT32.pack(value))

    def write_float64(self, value: float) -> None:
        self.stream.write(_FLOAT64.pack(value))

    def write_string(self, value: str) -> None:
        data = value.encode("utf-8")
        self._write_7bit_int(len(data))
        self.stream.write(data)

    def write_blob(self, data: bytes) -> None:
        """Write an int32 length followed by exactly ``len(data)`` bytes."""
        self.write_int32(len(data))
        self.stream.write(data)

    def _write_7bit_int(self, value: int) -> None:
        out = bytearray()
        while value >= 0x80:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        out.append(value)
        self.stream.write(bytes(out))


class BinaryReader:
    """Reads primitives from a binary stream.

    Every short read raises :class:`SnapshotReadError`.
    """

    # int32 varint never needs more than 5 groups
    _MAX_VARINT_BYTES = 5

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def read_bytes(self, count: int) -> bytes:
        if count < 0:
            raise SnapshotReadError(f"Negative length prefix: {count}")
        data = self.stream.read(count)
        if data is None or len(data) != count:
            got = 0 if data is None else len(data)
            raise SnapshotReadError(
                f"Unexpected end of stream: wanted {count} bytes, got {got}"
            )
        return data

    def read_int32(self) -> int:
        return _INT32.unpack(self.read_bytes(_INT32.size))[0]

    def read_int64(self) -> int:
        return _INT64.unpack(self.read_bytes(_INT64.size))[0]

    def read_float32(self) -> float:
        return _FLOAT32.unpack(self.read_bytes(_FLOAT32.size))[0]

    def read_float64(self) -> float:
        return _FLOAT64.unpack(self.read_bytes(_FLOAT64.size))[0]

    def read_string(self) -> str:
        length = self._read_7bit_int()
        data = self.read_bytes(length)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SnapshotReadError(f"Malformed string: {exc}") from exc

    def read_blob(self) -> bytes:
        return self.read_bytes(self.read_int32())

    def _read_7bit_int(self) -> int:
        result = 0
        for i in range(self._MAX_VARINT_BYTES):
            byte = self.read_bytes(1)[0]
            result |= (byte & 0x7F) << (7 * i)
            if not byte & 0x80:
                return result
        raise SnapshotReadError("Malformed 7-bit encoded length prefix")
