from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bitpack import DEFAULT_BIT_CONFIG, BitConfig
from errors import InvalidInput
from huff_canonical import build_canonical_tree, unpack_nibble_lengths
from segments import decode_records, split_uncompressed

logger = logging.getLogger(__name__)

# Store-type flag of a dictionary page
STORE_HUFFMAN = 0
STORE_UNCOMPRESSED = 1

@dataclass(frozen=True)
class Page:
    """
    One independently compressed unit, already lifted out of its container.
    Huffman pages carry either a 256-entry `lengths` table or the 128-byte
    `packed_lengths` form, never both.
    """
    store_type: int
    buffer: bytes
    total_bits: int = 0
    offsets: Sequence[int] = ()
    lengths: Optional[Sequence[int]] = None
    packed_lengths: Optional[bytes] = None

    def length_table(self):
        if (self.lengths is None) == (self.packed_lengths is None):
            raise InvalidInput("Huffman page needs exactly one of lengths / packed_lengths")
        if self.packed_lengths is not None:
            return unpack_nibble_lengths(self.packed_lengths)
        return self.lengths

def decode_page(page: Page, config: BitConfig = DEFAULT_BIT_CONFIG) -> List[bytes]:
    if page.store_type == STORE_UNCOMPRESSED:
        records = split_uncompressed(page.buffer)
    elif page.store_type == STORE_HUFFMAN:
        tree = build_canonical_tree(page.length_table())
        records = decode_records(tree, page.buffer, page.offsets, page.total_bits, config)
    else:
        raise InvalidInput(f"unknown store type: {page.store_type}")
    logger.debug("page store_type=%d: %d records", page.store_type, len(records))
    return records
