import pytest

from bitpack import (
    DEFAULT_BIT_CONFIG,
    PAIRED_WORD_CONFIG,
    BitConfig,
    BitOrder,
    BitReader,
    BitWriter,
    BytePairing,
    pair_bytes,
    read_bits,
)
from errors import BufferUnderrun, InvalidInput

ALL_CONFIGS = [
    BitConfig(order, pairing) for order in BitOrder for pairing in BytePairing
]


def bitstr(bits):
    return "".join(str(b) for b in bits)


@pytest.mark.parametrize("config, expected", [
    (BitConfig(BitOrder.MSB_FIRST, BytePairing.IDENTITY), "1000000000000001"),
    (BitConfig(BitOrder.MSB_FIRST, BytePairing.SWAP_PAIRS), "0000000110000000"),
    (BitConfig(BitOrder.LSB_FIRST, BytePairing.IDENTITY), "0000000110000000"),
    (BitConfig(BitOrder.LSB_FIRST, BytePairing.SWAP_PAIRS), "1000000000000001"),
])
def test_read_follows_both_policies(config, expected):
    assert bitstr(read_bits(b"\x80\x01", 16, 0, 16, config)) == expected


def test_address_translation():
    cfg = PAIRED_WORD_CONFIG
    # bit 9 is logical byte 1 -> physical byte 0, second bit from the top
    assert cfg.byte_address(9) == 0
    assert cfg.bit_shift(9) == 6
    assert BitReader(b"\xc0\x00", 16, cfg).bit_at(9) == 1
    assert DEFAULT_BIT_CONFIG.byte_address(9) == 1


def test_partial_range():
    assert bitstr(read_bits(b"\xf0\x0f", 16, 2, 6)) == "1100"


def test_swap_pairs_past_odd_buffer_underruns():
    bits = read_bits(b"\x00\x00\x00", 24, 16, 24, PAIRED_WORD_CONFIG)
    with pytest.raises(BufferUnderrun):
        next(bits)


def test_total_bits_beyond_buffer_underruns_lazily():
    bits = read_bits(b"\xff", 16, 0, 16)
    assert bitstr(next(bits) for _ in range(8)) == "11111111"
    with pytest.raises(BufferUnderrun):
        next(bits)


def test_underrun_is_an_eof_error():
    with pytest.raises(EOFError):
        BitReader(b"", 8).bit_at(0)


@pytest.mark.parametrize("start, end", [(-1, 4), (5, 4), (0, 17)])
def test_range_outside_total_bits_rejected(start, end):
    with pytest.raises(InvalidInput):
        read_bits(b"\x00\x00", 16, start, end)


def test_writer_pads_final_byte():
    bw = BitWriter()
    bw.write_code(0b101, 3)
    assert bw.nbits == 3
    assert bw.finish() == bytes([0b10100000])


def test_writer_lsb_first():
    bw = BitWriter(BitConfig(BitOrder.LSB_FIRST))
    bw.write_code(0b101, 3)
    assert bw.finish() == bytes([0b00000101])


def test_writer_swap_pairs_pads_to_even():
    bw = BitWriter(PAIRED_WORD_CONFIG)
    bw.write_bits("101")
    assert bw.finish() == b"\x00\xa0"


def test_writer_rejects_non_bits():
    with pytest.raises(InvalidInput):
        BitWriter().write_bits("102")


@pytest.mark.parametrize("config", ALL_CONFIGS)
def test_reader_sees_what_writer_wrote(config):
    pattern = "1101000111010110011"
    bw = BitWriter(config)
    bw.write_bits(pattern)
    data = bw.finish()
    assert bitstr(read_bits(data, len(pattern), 0, len(pattern), config)) == pattern


def test_pair_bytes():
    assert pair_bytes(b"\x01\x02\x03\x04", BytePairing.SWAP_PAIRS) == b"\x02\x01\x04\x03"
    assert pair_bytes(b"\x01\x02\x03", BytePairing.IDENTITY) == b"\x01\x02\x03"


@pytest.mark.parametrize("config", ALL_CONFIGS)
def test_flags_identify_config(config):
    assert BitConfig.from_flags(config.to_flags()) == config


def test_unknown_flags_rejected():
    with pytest.raises(InvalidInput):
        BitConfig.from_flags(0x04)


@pytest.mark.parametrize("total_bits", [8.5, "16", True])
def test_total_bits_must_be_integral(total_bits):
    with pytest.raises(InvalidInput):
        BitReader(b"\x00\x00", total_bits)


@pytest.mark.parametrize("start, end", [(0.0, 8), (0, 7.9), ("0", 8)])
def test_range_bounds_must_be_integral(start, end):
    with pytest.raises(InvalidInput):
        read_bits(b"\x00\x00", 16, start, end)


@pytest.mark.parametrize("data", [None, 2, "ab"])
def test_buffer_must_be_bytes_like(data):
    with pytest.raises(InvalidInput):
        BitReader(data, 8)
