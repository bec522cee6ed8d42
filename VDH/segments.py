from __future__ import annotations
import logging
from typing import Iterable, Iterator, List, Sequence, Tuple

from bitpack import DEFAULT_BIT_CONFIG, BitConfig, BitReader, BitWriter, as_bit_index
from code_tree import CodeTree
from errors import HuffmanError, InvalidInput

logger = logging.getLogger(__name__)

def record_spans(offsets: Sequence[int], total_bits: int) -> List[Tuple[int, int]]:
    """
    [start, end) bit span of each record. Offsets must be non-decreasing
    and lie within [0, total_bits]; anything else is rejected.
    """
    if offsets is None:
        raise InvalidInput("record offset table is missing")
    total_bits = as_bit_index(total_bits, "total_bits")
    if total_bits < 0:
        raise InvalidInput(f"total_bits must be >= 0, got {total_bits}")
    offs = [as_bit_index(o, f"record {i} offset") for i, o in enumerate(offsets)]
    prev = 0
    for i, o in enumerate(offs):
        if o < prev:
            raise InvalidInput(f"record {i}: offset {o} is before previous offset {prev}")
        if o > total_bits:
            raise InvalidInput(f"record {i}: offset {o} is past total_bits {total_bits}")
        prev = o
    ends = offs[1:] + [total_bits]
    return list(zip(offs, ends))

def _decode_span(tree: CodeTree, reader: BitReader, start: int, end: int) -> bytes:
    bits = reader.read(start, end)
    out = bytearray()
    used = 0
    want = end - start
    while used < want:
        sym, n = tree.decode_one(bits)
        out.append(sym)
        used += n
    return bytes(out)

def decode_record(tree: CodeTree, buffer: bytes, start: int, end: int, total_bits: int,
                  config: BitConfig = DEFAULT_BIT_CONFIG) -> bytes:
    """Decode symbols until exactly end - start bits are consumed."""
    return _decode_span(tree, BitReader(buffer, total_bits, config), start, end)

def iter_records(tree: CodeTree, buffer: bytes, offsets: Sequence[int], total_bits: int,
                 config: BitConfig = DEFAULT_BIT_CONFIG) -> Iterator[bytes]:
    """Lazily decode one record per offset, in offset order."""
    spans = record_spans(offsets, total_bits)
    reader = BitReader(buffer, total_bits, config)
    for i, (start, end) in enumerate(spans):
        try:
            yield _decode_span(tree, reader, start, end)
        except HuffmanError as e:
            raise type(e)(f"record {i} [{start}, {end}): {e}") from e

def decode_records(tree: CodeTree, buffer: bytes, offsets: Sequence[int], total_bits: int,
                   config: BitConfig = DEFAULT_BIT_CONFIG) -> List[bytes]:
    records = list(iter_records(tree, buffer, offsets, total_bits, config))
    logger.debug("decoded %d records from %d bits", len(records), total_bits)
    return records

def encode_records(tree: CodeTree, records: Iterable[bytes],
                   config: BitConfig = DEFAULT_BIT_CONFIG) -> Tuple[bytes, List[int], int]:
    """
    Inverse of decode_records: concatenate every record's codes into one
    buffer and return (buffer, offsets, total_bits).
    """
    book = tree.codebook()
    bw = BitWriter(config)
    offsets: List[int] = []
    for i, rec in enumerate(records):
        offsets.append(bw.nbits)
        for sym in bytes(rec):
            bits = book.get(sym)
            if bits is None:
                raise InvalidInput(f"record {i}: byte {sym:#04x} has no code in this tree")
            bw.write_bits(bits)
    return bw.finish(), offsets, bw.nbits

def split_uncompressed(buffer: bytes) -> List[bytes]:
    """
    Split a raw page into null-terminated records. A trailing fragment
    without terminator is kept as the last record.
    """
    if buffer is None:
        raise InvalidInput("page buffer is missing")
    parts = bytes(buffer).split(b"\x00")
    if parts[-1] == b"":
        parts.pop()
    return parts
