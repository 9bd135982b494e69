import io

import pytest

from imgevolve.exceptions import SnapshotReadError
from imgevolve.utils.binary import BinaryReader, BinaryWriter


def _written(fn) -> bytes:
    buffer = io.BytesIO()
    fn(BinaryWriter(buffer))
    return buffer.getvalue()


def test_int32_is_little_endian():
    assert _written(lambda w: w.write_int32(1)) == b"\x01\x00\x00\x00"
    assert _written(lambda w: w.write_int32(-1)) == b"\xff\xff\xff\xff"


def test_primitives_read_back():
    buffer = io.BytesIO()
    writer = BinaryWriter(buffer)
    writer.write_int32(-123456)
    writer.write_int64(2**40 + 7)
    writer.write_float32(0.5)
    writer.write_float64(0.1)
    writer.write_string("ReplaceShape")
    writer.write_blob(b"\x89PNG")

    reader = BinaryReader(io.BytesIO(buffer.getvalue()))
    assert reader.read_int32() == -123456
    assert reader.read_int64() == 2**40 + 7
    assert reader.read_float32() == 0.5
    assert reader.read_float64() == 0.1
    assert reader.read_string() == "ReplaceShape"
    assert reader.read_blob() == b"\x89PNG"


def test_short_string_has_single_byte_prefix():
    assert _written(lambda w: w.write_string("abc")) == b"\x03abc"


def test_long_string_uses_7bit_length_prefix():
    data = _written(lambda w: w.write_string("x" * 300))
    # 300 = 0b10_0101100 -> 0xAC 0x02
    assert data[:2] == b"\xac\x02"
    assert BinaryReader(io.BytesIO(data)).read_string() == "x" * 300


def test_utf8_length_counts_bytes():
    data = _written(lambda w: w.write_string("é"))
    assert data == b"\x02\xc3\xa9"


@pytest.mark.parametrize(
    "payload, read",
    [
        (b"\x01\x00", lambda r: r.read_int32()),
        (b"\x01\x00\x00\x00", lambda r: r.read_int64()),
        (b"\x05ab", lambda r: r.read_string()),
        (b"\x04\x00\x00\x00ab", lambda r: r.read_blob()),
        (b"", lambda r: r.read_float64()),
    ],
)
def test_short_reads_raise(payload, read):
    with pytest.raises(SnapshotReadError):
        read(BinaryReader(io.BytesIO(payload)))


def test_negative_blob_length_raises():
    with pytest.raises(SnapshotReadError):
        BinaryReader(io.BytesIO(b"\xff\xff\xff\xff")).read_blob()


def test_overlong_varint_raises():
    with pytest.raises(SnapshotReadError):
        BinaryReader(io.BytesIO(b"\x80" * 6)).read_string()
