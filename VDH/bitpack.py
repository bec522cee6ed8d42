from __future__ import annotations
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

import numpy as np

from errors import BufferUnderrun, InvalidInput

class BitOrder(str, Enum):
    MSB_FIRST = "big"      # bit 7 of each byte is read first
    LSB_FIRST = "little"   # bit 0 of each byte is read first

class BytePairing(str, Enum):
    IDENTITY = "identity"
    SWAP_PAIRS = "swap_pairs"  # logical byte k lives at physical byte k ^ 1

FLAG_LSB_FIRST = 1 << 0
FLAG_SWAP_PAIRS = 1 << 1

@dataclass(frozen=True)
class BitConfig:
    bit_order: BitOrder = BitOrder.MSB_FIRST
    byte_pairing: BytePairing = BytePairing.IDENTITY

    def byte_address(self, bit_pos: int) -> int:
        k = bit_pos >> 3
        if self.byte_pairing is BytePairing.SWAP_PAIRS:
            return k ^ 1
        return k

    def bit_shift(self, bit_pos: int) -> int:
        i = bit_pos & 7
        if self.bit_order is BitOrder.MSB_FIRST:
            return 7 - i
        return i

    def to_flags(self) -> int:
        flags = 0
        if self.bit_order is BitOrder.LSB_FIRST:
            flags |= FLAG_LSB_FIRST
        if self.byte_pairing is BytePairing.SWAP_PAIRS:
            flags |= FLAG_SWAP_PAIRS
        return flags

    @classmethod
    def from_flags(cls, flags: int) -> "BitConfig":
        if flags & ~(FLAG_LSB_FIRST | FLAG_SWAP_PAIRS):
            raise InvalidInput(f"unknown bit config flags: {flags:#x}")
        return cls(
            BitOrder.LSB_FIRST if flags & FLAG_LSB_FIRST else BitOrder.MSB_FIRST,
            BytePairing.SWAP_PAIRS if flags & FLAG_SWAP_PAIRS else BytePairing.IDENTITY,
        )

DEFAULT_BIT_CONFIG = BitConfig()
PAIRED_WORD_CONFIG = BitConfig(BitOrder.MSB_FIRST, BytePairing.SWAP_PAIRS)

def as_bit_index(value, what: str) -> int:
    """Integral bit position or count. Floats, bools and strings are rejected, never truncated."""
    if isinstance(value, bool):
        raise InvalidInput(f"{what} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError as e:
        raise InvalidInput(f"{what} must be an integer, got {value!r}") from e

def pair_bytes(data: bytes, pairing: BytePairing) -> bytes:
    """
    Apply the byte-pairing transform to a whole buffer (it is its own inverse).
    Odd-length buffers get a zero pad byte before swapping.
    """
    if pairing is BytePairing.IDENTITY:
        return bytes(data)
    arr = np.frombuffer(bytes(data), dtype=np.uint8)
    if arr.size % 2:
        arr = np.append(arr, np.uint8(0))
    return arr.reshape(-1, 2)[:, ::-1].tobytes()


class BitWriter:
    def __init__(self, config: BitConfig = DEFAULT_BIT_CONFIG):
        self.config = config
        self._bits = bytearray()  # one 0/1 per logical bit

    def __len__(self):
        return len(self._bits)

    @property
    def nbits(self) -> int:
        return len(self._bits)

    def write_bit(self, bit: int):
        self._bits.append(1 if bit else 0)

    def write_code(self, code: int, length: int):
        """Write 'length' bits of code (MSB-first)."""
        for i in range(length - 1, -1, -1):
            self._bits.append((code >> i) & 1)

    def write_bits(self, bits: str):
        """Append a '0'/'1' string as produced by CodeTree.codebook()."""
        for ch in bits:
            if ch not in "01":
                raise InvalidInput(f"not a bit: {ch!r}")
            self._bits.append(ch == "1")

    def finish(self) -> bytes:
        """Pack into bytes per the bit order, pad with zeros, then apply byte pairing."""
        arr = np.frombuffer(bytes(self._bits), dtype=np.uint8)
        packed = np.packbits(arr, bitorder=self.config.bit_order.value).tobytes()
        return pair_bytes(packed, self.config.byte_pairing)


class BitReader:
    """
    Random-access bit addressing over a byte buffer.
    total_bits bounds every range; it defaults to the whole buffer.
    """

    def __init__(self, data: bytes, total_bits: Optional[int] = None,
                 config: BitConfig = DEFAULT_BIT_CONFIG):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidInput(f"bit buffer must be bytes-like, got {type(data).__name__}")
        self.data = bytes(data)
        self.total_bits = len(self.data) * 8 if total_bits is None else as_bit_index(total_bits, "total_bits")
        if self.total_bits < 0:
            raise InvalidInput(f"total_bits must be >= 0, got {self.total_bits}")
        self.config = config

    def bit_at(self, pos: int) -> int:
        addr = self.config.byte_address(pos)
        if not (0 <= addr < len(self.data)):
            raise BufferUnderrun(
                f"bit {pos} maps to byte {addr}, buffer holds {len(self.data)} bytes")
        return (self.data[addr] >> self.config.bit_shift(pos)) & 1

    def read(self, start: int, end: int) -> Iterator[int]:
        """Bits in [start, end); the range is checked before the first bit is produced."""
        start = as_bit_index(start, "start bit")
        end = as_bit_index(end, "end bit")
        if not (0 <= start <= end <= self.total_bits):
            raise InvalidInput(f"bit range [{start}, {end}) outside [0, {self.total_bits})")
        return self._iter(start, end)

    def _iter(self, start: int, end: int) -> Iterator[int]:
        for pos in range(start, end):
            yield self.bit_at(pos)

def read_bits(data: bytes, total_bits: int, start: int, end: int,
              config: BitConfig = DEFAULT_BIT_CONFIG) -> Iterator[int]:
    return BitReader(data, total_bits, config).read(start, end)
