from __future__ import annotations
import heapq
import logging
from typing import List, Tuple

import numpy as np

from code_tree import NONE, CodeTree, Node
from errors import InvalidInput

logger = logging.getLogger(__name__)

def as_bytes(source) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    raise InvalidInput(f"cannot encode {type(source).__name__}; expected bytes-like or str")

def count_bytes(data: bytes) -> np.ndarray:
    """Occurrences of each byte value, length 256."""
    return np.bincount(np.frombuffer(data, dtype=np.uint8), minlength=256)

def build_tree(source) -> CodeTree:
    """
    Greedy Huffman construction over byte counts.
    Leaves are appended first in symbol order, merged nodes after them;
    the root is always the last node in the arena.
    """
    data = as_bytes(source)
    counts = count_bytes(data)
    nodes: List[Node] = []
    weights: List[int] = []
    for sym in np.flatnonzero(counts):
        nodes.append(Node(symbol=int(sym)))
        weights.append(int(counts[sym]))

    if len(nodes) == 0:
        # Edge case: empty input -> a lone root with no codes
        return CodeTree([Node(symbol=0)], 0)
    if len(nodes) == 1:
        # Edge case: only one symbol -> wrap it so it still gets a 1-bit code
        return CodeTree([nodes[0], Node(left=NONE, right=0)], 1)

    # (weight, index): ties go to the older node, keeping the result reproducible
    pq: List[Tuple[int, int]] = [(w, i) for i, w in enumerate(weights)]
    heapq.heapify(pq)
    while len(pq) > 1:
        wa, a = heapq.heappop(pq)
        wb, b = heapq.heappop(pq)
        nodes.append(Node(left=a, right=b))
        heapq.heappush(pq, (wa + wb, len(nodes) - 1))

    tree = CodeTree(nodes, pq[0][1])
    logger.debug("frequency tree: %d symbols, %d nodes, %d input bytes",
                 len(weights), len(nodes), len(data))
    return tree

def build_code_lengths(source) -> np.ndarray:
    """Per-symbol code lengths (256 entries, 0 = unused) of the frequency tree."""
    return build_tree(source).code_lengths()
