from __future__ import annotations
import logging
from typing import Dict, Tuple

import numpy as np

from code_tree import CodeTree, TrieBuilder
from errors import InvalidInput

logger = logging.getLogger(__name__)

NUM_SYMBOLS = 256
PACKED_TABLE_SIZE = NUM_SYMBOLS // 2
MAX_CODE_LEN = 15  # format contract: a length must fit in one nibble

def validate_lengths(lengths) -> np.ndarray:
    """
    Check a 256-entry code length table and return it as an int64 array.
    Any entry outside 0..MAX_CODE_LEN is rejected, never truncated.
    """
    if lengths is None:
        raise InvalidInput("length table is missing")
    if isinstance(lengths, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(bytes(lengths), dtype=np.uint8).astype(np.int64)
    else:
        try:
            arr = np.asarray(lengths)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"unusable length table: {e}") from e
        if arr.dtype.kind not in "iu":
            raise InvalidInput(f"length table must hold integers, got dtype {arr.dtype}")
        arr = arr.astype(np.int64)
    if arr.shape != (NUM_SYMBOLS,):
        raise InvalidInput(f"length table must have {NUM_SYMBOLS} entries, got shape {arr.shape}")
    bad = np.flatnonzero((arr < 0) | (arr > MAX_CODE_LEN))
    if bad.size:
        sym = int(bad[0])
        raise InvalidInput(f"symbol {sym}: code length {int(arr[sym])} outside 0..{MAX_CODE_LEN}")
    return arr

def unpack_nibble_lengths(packed) -> np.ndarray:
    """
    Expand a 128-byte nibble-packed table to 256 lengths.
    Low nibble -> even symbol, high nibble -> odd symbol.
    """
    if packed is None:
        raise InvalidInput("packed length table is missing")
    if isinstance(packed, (bytes, bytearray, memoryview)):
        raw = np.frombuffer(bytes(packed), dtype=np.uint8)
    else:
        try:
            arr = np.asarray(packed)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"unusable packed length table: {e}") from e
        if arr.dtype.kind not in "iu" or arr.ndim != 1:
            raise InvalidInput(
                f"packed length table must be bytes or a 1-D integer array, got {arr.dtype} shape {arr.shape}")
        if arr.size and (arr.min() < 0 or arr.max() > 0xFF):
            raise InvalidInput("packed length table entries must be bytes (0..255)")
        raw = arr.astype(np.uint8)
    if raw.size != PACKED_TABLE_SIZE:
        raise InvalidInput(f"packed length table must be {PACKED_TABLE_SIZE} bytes, got {raw.size}")
    out = np.empty(NUM_SYMBOLS, dtype=np.int64)
    out[0::2] = raw & 0x0F
    out[1::2] = raw >> 4
    return out

def pack_nibble_lengths(lengths) -> bytes:
    arr = validate_lengths(lengths).astype(np.uint8)
    return (arr[0::2] | (arr[1::2] << 4)).astype(np.uint8).tobytes()

def canonical_codes_from_lengths(lengths) -> Dict[int, Tuple[int, int]]:
    """
    Return mapping: sym -> (code_int, code_len), canonical Huffman.
    Canonical ordering: sort by (code_len, sym)
    """
    arr = validate_lengths(lengths)
    items = sorted((int(arr[s]), s) for s in np.flatnonzero(arr).tolist())
    code = 0
    prev_len = 0
    out: Dict[int, Tuple[int, int]] = {}
    for L, sym in items:
        code <<= (L - prev_len)
        if code >= (1 << L):
            raise InvalidInput(f"symbol {sym}: length table is oversubscribed at length {L}")
        out[sym] = (code, L)
        code += 1
        prev_len = L
    return out

def build_canonical_tree(lengths) -> CodeTree:
    codes = canonical_codes_from_lengths(lengths)
    tree = TrieBuilder().insert_all(codes.items()).build()
    logger.debug("canonical tree: %d symbols, %d nodes", len(codes), len(tree))
    return tree
