import io
import struct

from bitpack import BitConfig
from code_tree import NONE, CodeTree, Node
from codec import Encoded
from errors import InvalidInput, MalformedStream

MAGIC = b"VDHF"   # 4 bytes
VERSION = 1       # 1 byte

# Header (little-endian):
# magic(4) version(1) flags(1) nodes(u16) root(u16)
# total_bits(u32) payload_len(u32)
HEADER_FMT = "<4sBBHHII"
HEADER_SIZE = struct.calcsize(HEADER_FMT)

# Arena entry:
# left(i16) right(i16) symbol(u8)
NODE_FMT = "<hhB"
NODE_SIZE = struct.calcsize(NODE_FMT)

def write_encoded(f, enc: Encoded):
    tree = enc.tree
    f.write(struct.pack(
        HEADER_FMT,
        MAGIC, VERSION, enc.config.to_flags(),
        len(tree.nodes), tree.root,
        enc.total_bits, len(enc.payload)
    ))
    for n in tree.nodes:
        f.write(struct.pack(NODE_FMT, n.left, n.right, n.symbol))
    f.write(enc.payload)

def read_encoded(f) -> Encoded:
    data = f.read(HEADER_SIZE)
    if len(data) != HEADER_SIZE:
        raise MalformedStream("Malformed stream: header too short")
    magic, ver, flags, nnodes, root, total_bits, payload_len = struct.unpack(HEADER_FMT, data)
    if magic != MAGIC:
        raise MalformedStream("Bad magic number (not VDHF)")
    if ver != VERSION:
        raise MalformedStream(f"Unsupported version: {ver}")
    try:
        config = BitConfig.from_flags(flags)
    except InvalidInput as e:
        raise MalformedStream(str(e)) from e
    if nnodes == 0:
        raise MalformedStream("Malformed stream: empty node arena")

    nodes = []
    for _ in range(nnodes):
        data = f.read(NODE_SIZE)
        if len(data) != NODE_SIZE:
            raise MalformedStream("Malformed stream: node arena truncated")
        left, right, sym = struct.unpack(NODE_FMT, data)
        for child in (left, right):
            if child != NONE and not (0 <= child < nnodes):
                raise MalformedStream(f"Malformed stream: child index {child} out of range")
        nodes.append(Node(left, right, sym))
    if root >= nnodes:
        raise MalformedStream(f"Malformed stream: root {root} out of range")
    _check_acyclic(nodes, root)

    payload = f.read(payload_len)
    if len(payload) != payload_len:
        raise MalformedStream("Malformed stream: payload truncated")
    if total_bits > payload_len * 8:
        raise MalformedStream(f"Malformed stream: {total_bits} bits do not fit in {payload_len} bytes")
    return Encoded(tree=CodeTree(nodes, root), payload=payload, total_bits=total_bits, config=config)

def _check_acyclic(nodes, root):
    # every node reachable from the root must be reached exactly once
    seen = set()
    stack = [root]
    while stack:
        idx = stack.pop()
        if idx in seen:
            raise MalformedStream(f"Malformed stream: node {idx} reached twice")
        seen.add(idx)
        n = nodes[idx]
        stack.extend(c for c in (n.left, n.right) if c != NONE)

def dumps(enc: Encoded) -> bytes:
    buf = io.BytesIO()
    write_encoded(buf, enc)
    return buf.getvalue()

def loads(blob: bytes) -> Encoded:
    buf = io.BytesIO(blob)
    enc = read_encoded(buf)
    if buf.read(1):
        raise MalformedStream("Malformed stream: trailing bytes after payload")
    return enc
