import io
import struct

import pytest

from bitpack import BitConfig, BitOrder, BytePairing
from bitstream import HEADER_FMT, MAGIC, NODE_FMT, dumps, loads, read_encoded, write_encoded
from codec import decode, encode
from errors import InvalidInput, MalformedStream

GETTYSBURG = (
    "Four score and seven years ago our fathers brought forth on this continent, a new nation, "
    "conceived in Liberty, and dedicated to the proposition that all men are created equal.\n"
    "Now we are engaged in a great civil war, testing whether that nation, or any nation so "
    "conceived and so dedicated, can long endure."
)

SAMPLES = [
    b"",
    b"a",
    b"aaaaaaaaaaaa",
    b"abracadabra",
    bytes(range(256)),
    bytes(range(256)) * 3 + b"\x00\x00\x00",
    GETTYSBURG.encode("utf-8"),
]

ALL_CONFIGS = [
    BitConfig(order, pairing) for order in BitOrder for pairing in BytePairing
]


@pytest.mark.parametrize("data", SAMPLES)
def test_roundtrip(data):
    assert decode(encode(data)) == data


@pytest.mark.parametrize("config", ALL_CONFIGS)
def test_roundtrip_every_config(config):
    data = GETTYSBURG.encode("utf-8")
    enc = encode(data, config)
    assert enc.config == config
    assert decode(enc) == data


def test_str_and_buffers_accepted():
    assert decode(encode(GETTYSBURG)) == GETTYSBURG.encode("utf-8")
    assert decode(encode(bytearray(b"xyz"))) == b"xyz"
    assert decode(encode(memoryview(b"xyz"))) == b"xyz"


def test_none_rejected():
    with pytest.raises(InvalidInput):
        encode(None)


def test_empty_input():
    enc = encode(b"")
    assert enc.total_bits == 0
    assert enc.payload == b""
    assert len(enc.tree) == 1


def test_repeated_byte_uses_one_bit_each():
    enc = encode(b"q" * 20)
    assert enc.total_bits == 20
    assert len(enc) == 3


def test_encoded_size():
    enc = encode(b"abracadabra")
    # a:5 b:2 r:2 c:1 d:1 -> 23 bits
    assert enc.total_bits == 23
    assert len(enc) == 3


def test_compresses_skewed_text():
    data = GETTYSBURG.encode("utf-8")
    assert len(encode(data)) < len(data)


@pytest.mark.parametrize("config", ALL_CONFIGS)
def test_serialized_blob_roundtrip(config):
    enc = encode(GETTYSBURG, config)
    back = loads(dumps(enc))
    assert back == enc
    assert decode(back) == GETTYSBURG.encode("utf-8")


def test_write_and_read_file_object():
    enc = encode(b"abracadabra")
    f = io.BytesIO()
    write_encoded(f, enc)
    write_encoded(f, encode(b""))
    f.seek(0)
    assert decode(read_encoded(f)) == b"abracadabra"
    assert decode(read_encoded(f)) == b""


def test_bad_magic():
    blob = bytearray(dumps(encode(b"abc")))
    blob[0:4] = b"NOPE"
    with pytest.raises(MalformedStream):
        loads(bytes(blob))


def test_bad_version():
    blob = bytearray(dumps(encode(b"abc")))
    blob[4] = 99
    with pytest.raises(MalformedStream):
        loads(bytes(blob))


def test_truncated_blob():
    blob = dumps(encode(b"abracadabra"))
    for cut in (3, 20, len(blob) - 1):
        with pytest.raises(MalformedStream):
            loads(blob[:cut])


def test_trailing_bytes():
    with pytest.raises(MalformedStream):
        loads(dumps(encode(b"abc")) + b"\x00")


def test_cyclic_arena_rejected():
    blob = struct.pack(HEADER_FMT, MAGIC, 1, 0, 2, 1, 0, 0)
    blob += struct.pack(NODE_FMT, -1, -1, 65)
    blob += struct.pack(NODE_FMT, 1, 0, 0)  # root points at itself
    with pytest.raises(MalformedStream):
        loads(blob)


def test_child_index_out_of_range():
    blob = struct.pack(HEADER_FMT, MAGIC, 1, 0, 1, 0, 0, 0)
    blob += struct.pack(NODE_FMT, 5, -1, 0)
    with pytest.raises(MalformedStream):
        loads(blob)


def test_total_bits_larger_than_payload():
    blob = struct.pack(HEADER_FMT, MAGIC, 1, 0, 1, 0, 9, 1)
    blob += struct.pack(NODE_FMT, -1, -1, 0)
    blob += b"\x00"
    with pytest.raises(MalformedStream):
        loads(blob)
