from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from errors import InvalidInput, MalformedStream

NONE = -1  # "no child" sentinel

@dataclass(frozen=True)
class Node:
    left: int = NONE
    right: int = NONE
    symbol: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.left == NONE and self.right == NONE


class CodeTree:
    """
    Binary trie stored as an append-only arena of Nodes.
    Children are referenced by arena index; bit 0 goes left, bit 1 goes right.
    The root itself never carries a code: a root-only tree has no codes at all.
    """

    def __init__(self, nodes: Sequence[Node], root: int):
        if not nodes:
            raise InvalidInput("code tree needs at least one node")
        if not (0 <= root < len(nodes)):
            raise InvalidInput(f"root index {root} outside arena of {len(nodes)}")
        self.nodes: Tuple[Node, ...] = tuple(nodes)
        self.root = root

    def __len__(self):
        return len(self.nodes)

    def __eq__(self, other):
        if not isinstance(other, CodeTree):
            return NotImplemented
        return self.root == other.root and self.nodes == other.nodes

    def __hash__(self):
        return hash((self.root, self.nodes))

    def __repr__(self):
        return f"CodeTree(nodes={len(self.nodes)}, root={self.root})"

    def decode_one(self, bits: Iterator[int]) -> Tuple[int, int]:
        """
        Walk from the root consuming bits until a leaf is reached.
        Returns (symbol, bits_consumed).
        """
        nodes = self.nodes
        node = nodes[self.root]
        used = 0
        while True:
            b = next(bits, None)
            if b is None:
                raise MalformedStream(f"bit range ended inside a code after {used} bits")
            used += 1
            child = node.right if b else node.left
            if child == NONE:
                raise MalformedStream("Invalid Huffman code (corrupt stream)")
            node = nodes[child]
            if node.is_leaf:
                return node.symbol, used

    def iter_depths(self) -> Iterator[Tuple[int, int]]:
        """Lazily yield (symbol, depth) for every leaf, left to right."""
        stack = [(self.root, 0)]
        while stack:
            idx, depth = stack.pop()
            node = self.nodes[idx]
            if node.is_leaf:
                if depth > 0:
                    yield node.symbol, depth
                continue
            if node.right != NONE:
                stack.append((node.right, depth + 1))
            if node.left != NONE:
                stack.append((node.left, depth + 1))

    def codebook(self) -> Dict[int, str]:
        """symbol -> code as a string of '0'/'1'"""
        code: Dict[int, str] = {}
        stack = [(self.root, "")]
        while stack:
            idx, prefix = stack.pop()
            node = self.nodes[idx]
            if node.is_leaf:
                if prefix:
                    code[node.symbol] = prefix
                continue
            if node.right != NONE:
                stack.append((node.right, prefix + "1"))
            if node.left != NONE:
                stack.append((node.left, prefix + "0"))
        return code

    def code_table(self) -> Dict[int, Tuple[int, int]]:
        """symbol -> (code_int, code_len), MSB-first"""
        return {sym: (int(bits, 2), len(bits)) for sym, bits in self.codebook().items()}

    def code_lengths(self) -> np.ndarray:
        out = np.zeros(256, dtype=np.int64)
        for sym, depth in self.iter_depths():
            out[sym] = depth
        return out


class TrieBuilder:
    """
    Grows a CodeTree by inserting (code, length, symbol) triples.
    Internal nodes are created lazily, one per new bit.
    """

    def __init__(self):
        self._nodes: List[Node] = [Node()]
        self._is_internal: List[bool] = [True]

    def insert(self, code: int, length: int, symbol: int):
        if length < 1:
            raise InvalidInput(f"symbol {symbol}: code length must be >= 1, got {length}")
        if code < 0 or code >= (1 << length):
            raise InvalidInput(f"symbol {symbol}: code {code} does not fit in {length} bits")
        cur = 0
        for i in range(length - 1, -1, -1):
            bit = (code >> i) & 1
            node = self._nodes[cur]
            child = node.right if bit else node.left
            last = i == 0
            if child == NONE:
                child = len(self._nodes)
                self._nodes.append(Node(symbol=symbol if last else 0))
                self._is_internal.append(not last)
                if bit:
                    self._nodes[cur] = Node(node.left, child, node.symbol)
                else:
                    self._nodes[cur] = Node(child, node.right, node.symbol)
            elif last or not self._is_internal[child]:
                raise InvalidInput(f"symbol {symbol}: code collides with an existing code")
            cur = child

    def insert_all(self, codes: Iterable[Tuple[int, Tuple[int, int]]]):
        for sym, (code, L) in codes:
            self.insert(code, L, sym)
        return self

    def build(self) -> CodeTree:
        return CodeTree(self._nodes, 0)
