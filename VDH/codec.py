from __future__ import annotations
import logging
from dataclasses import dataclass

from bitpack import DEFAULT_BIT_CONFIG, BitConfig, BitWriter
from code_tree import CodeTree
from huffman import as_bytes, build_tree
from segments import decode_record

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Encoded:
    tree: CodeTree
    payload: bytes
    total_bits: int
    config: BitConfig = DEFAULT_BIT_CONFIG

    def __len__(self):
        return len(self.payload)

def encode(source, config: BitConfig = DEFAULT_BIT_CONFIG) -> Encoded:
    """
    Build a frequency tree for `source` (bytes-like or str) and pack its codes.
    The tree travels with the payload; decoding never needs a length table.
    """
    data = as_bytes(source)
    tree = build_tree(data)
    codes = tree.code_table()
    bw = BitWriter(config)
    for b in data:
        code, L = codes[b]
        bw.write_code(code, L)
    enc = Encoded(tree=tree, payload=bw.finish(), total_bits=bw.nbits, config=config)
    logger.debug("encoded %d bytes into %d bits", len(data), enc.total_bits)
    return enc

def decode(encoded: Encoded) -> bytes:
    return decode_record(encoded.tree, encoded.payload, 0, encoded.total_bits,
                         encoded.total_bits, encoded.config)
