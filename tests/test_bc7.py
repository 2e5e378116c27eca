import numpy as np
import pytest

from purebptc.bc7 import BC7_MODES, BC7Mode, decompress_block, parse_block
from purebptc.bptc import expand_quantized
from purebptc.enums import BC7Rotation


def pack(*fields):
    """Assemble a 16-byte block from (bit_offset, width, value) fields"""
    value = 0
    for offset, width, field in fields:
        value |= (field & ((1 << width) - 1)) << offset
    return value.to_bytes(16, 'little')


# Mode 6: red ramps 0 -> 255 along the texel index
MODE_6_BLOCK = pack(
    (0, 7, 0x40),
    (7, 7, 0), (14, 7, 127),
    (21, 7, 127), (28, 7, 0),
    (35, 7, 0), (42, 7, 0),
    (49, 7, 127), (56, 7, 127),
    (63, 1, 0), (64, 1, 1),
    *[(65 + 3 + 4 * (i - 1), 4, i) for i in range(1, 16)],
)

# Mode 5 with alpha/red rotation, every index zero
MODE_5_BLOCK = pack(
    (0, 6, 0x20), (6, 2, 1),
    (8, 7, 127), (15, 7, 127),
    (22, 7, 0), (29, 7, 0),
    (36, 7, 64), (43, 7, 64),
    (50, 8, 10), (58, 8, 10),
)

# Mode 1, partition 13 (top half / bottom half), shared p-bits
MODE_1_BLOCK = pack(
    (0, 2, 0b10), (2, 6, 13),
    (8, 6, 63), (14, 6, 63), (20, 6, 0), (26, 6, 0),
    (56, 6, 0), (62, 6, 0), (68, 6, 63), (74, 6, 63),
    (80, 1, 1), (81, 1, 0),
)


def mode_4_block(index_selection):
    # Primary (2-bit) indices all ones, secondary (3-bit) indices all zero
    return pack(
        (0, 5, 0x10), (5, 2, 0), (7, 1, index_selection),
        (8, 5, 0), (13, 5, 31),
        (38, 6, 0), (44, 6, 63),
        (50, 31, (1 << 31) - 1),
    )


def test_mode_table():
    assert len(BC7_MODES) == 8
    for mode in BC7_MODES:
        index_bits = 16 * mode.index_bits - mode.subsets
        if mode.index2_bits:
            index_bits += 16 * mode.index2_bits - 1
        pbits = mode.endpoint_pbits * 2 * mode.subsets + mode.shared_pbits * mode.subsets
        endpoint_bits = 2 * mode.subsets * (3 * mode.color_bits + mode.alpha_bits)
        header = mode.mode + 1 + mode.partition_bits + mode.rotation_bits + mode.index_selection_bits
        assert header + endpoint_bits + pbits + index_bits == 128


def test_mode_from_block():
    assert BC7Mode.from_block(MODE_6_BLOCK).mode == 6
    assert BC7Mode.from_block(bytes([0x80]) + bytes(15)).mode == 7
    assert BC7Mode.from_block(bytes([0x03]) + bytes(15)).mode == 0
    assert BC7Mode.from_block(bytes(16)) is None


def test_mode_6_ramp():
    texels = decompress_block(MODE_6_BLOCK)
    assert texels.shape == (16, 4)
    assert texels.dtype == np.uint8
    assert list(texels[:, 0]) == [0, 16, 36, 52, 68, 84, 104, 120, 135, 151, 171, 187, 203, 219, 239, 255]
    assert list(texels[0]) == [0, 254, 0, 254]
    assert list(texels[8]) == [135, 120, 1, 255]
    assert list(texels[15]) == [255, 1, 1, 255]


def test_mode_6_parse():
    block = parse_block(MODE_6_BLOCK)
    assert block.mode.mode == 6
    assert block.rotation == BC7Rotation.NO_CHANGE
    assert block.endpoints.shape == (2, 4)
    assert list(block.endpoints[0]) == [0, 254, 0, 254]
    assert list(block.endpoints[1]) == [255, 1, 1, 255]
    assert block.color_index_bit_count == 4
    assert block.index_start == 65
    assert [block.get_color_index(i) for i in range(16)] == list(range(16))
    assert block.get_alpha_index(9) == 9


def test_mode_5_rotation():
    texels = decompress_block(MODE_5_BLOCK)
    for texel in texels:
        assert list(texel) == [10, 0, 129, 255]

    block = parse_block(MODE_5_BLOCK)
    assert block.rotation == BC7Rotation.SWAP_ALPHA_RED
    assert list(block.endpoints[0]) == [255, 0, 129, 10]
    assert block.index2_start == 97


def test_mode_1_partition():
    texels = decompress_block(MODE_1_BLOCK)
    for i in range(8):
        assert list(texels[i]) == [255, 2, 2, 255]
    for i in range(8, 16):
        assert list(texels[i]) == [0, 0, 253, 255]

    block = parse_block(MODE_1_BLOCK)
    assert block.partition_index == 13
    assert block.get_partition_index(7) == 0
    assert block.get_partition_index(8) == 1
    assert block.endpoints.shape == (4, 4)


def test_mode_4_index_selection():
    texels = decompress_block(mode_4_block(1))
    assert list(texels[0]) == [0, 0, 0, 84]
    for i in range(1, 16):
        assert list(texels[i]) == [0, 0, 0, 255]

    block = parse_block(mode_4_block(1))
    assert block.color_index_bit_count == 3
    assert block.alpha_index_bit_count == 2
    assert block.get_color_index(0) == 0
    assert block.get_alpha_index(0) == 1
    assert block.get_alpha_index(5) == 3


def test_mode_4_without_index_selection():
    texels = decompress_block(mode_4_block(0))
    assert list(texels[0]) == [84, 0, 0, 0]
    for i in range(1, 16):
        assert list(texels[i]) == [255, 0, 0, 0]

    block = parse_block(mode_4_block(0))
    assert block.color_index_bit_count == 2
    assert block.alpha_index_bit_count == 3
    assert block.get_color_index(5) == 3
    assert block.get_alpha_index(5) == 0


def test_reserved_mode_decodes_to_zero():
    block = bytes([0x00]) + bytes([0xFF] * 15)
    assert parse_block(block) is None
    assert (decompress_block(block) == 0).all()
    assert (decompress_block(bytes(16)) == 0).all()


def test_output_buffer():
    out = np.full((4, 4, 4), 7, dtype=np.uint8)
    result = decompress_block(MODE_5_BLOCK, out=out)
    assert result is out
    assert list(out[3, 3]) == [10, 0, 129, 255]


def test_preconditions():
    with pytest.raises(ValueError):
        decompress_block(bytes(10))
    with pytest.raises(ValueError):
        decompress_block(MODE_6_BLOCK, out=np.zeros(63, dtype=np.uint8))
    with pytest.raises(ValueError):
        decompress_block(MODE_6_BLOCK, out=np.zeros(64, dtype=np.float32))


def encode_flat(mode, color, alpha):
    """
    Build a block where the first endpoint of every subset holds color/alpha,
    the second endpoint of every subset holds zeros and all indices are zero.
    """
    parts = [(0, mode.mode + 1, 1 << mode.mode)]
    pos = mode.mode + 1 + mode.partition_bits + mode.rotation_bits + mode.index_selection_bits
    num_endpoints = 2 * mode.subsets
    for value, bits in [(c, mode.color_bits) for c in color] + [(alpha, mode.alpha_bits)]:
        if not bits:
            continue
        for e in range(num_endpoints):
            parts.append((pos, bits, value if e % 2 == 0 else 0))
            pos += bits
    if mode.endpoint_pbits:
        for e in range(num_endpoints):
            parts.append((pos + e, 1, 1 if e % 2 == 0 else 0))
    elif mode.shared_pbits:
        parts.append((pos, mode.subsets, (1 << mode.subsets) - 1))
    return pack(*parts)


@pytest.mark.parametrize('mode', BC7_MODES, ids=lambda m: f'mode{m.mode}')
def test_every_mode_reproduces_first_endpoint(mode):
    color_max = (1 << mode.color_bits) - 1
    alpha_max = (1 << mode.alpha_bits) - 1
    block = encode_flat(mode, (color_max, 0, color_max >> 1), alpha_max)

    pbit = 1 if mode.has_pbits else 0
    bits = mode.color_bits + pbit
    expected = [
        expand_quantized((color_max << pbit) | pbit, bits, 8),
        expand_quantized(pbit, bits, 8),
        expand_quantized(((color_max >> 1) << pbit) | pbit, bits, 8),
        expand_quantized((alpha_max << pbit) | pbit, mode.alpha_bits + pbit, 8) if mode.alpha_bits else 255,
    ]

    parsed = parse_block(block)
    assert parsed.mode is mode
    assert parsed.partition_index == 0
    for e in range(0, 2 * mode.subsets, 2):
        assert list(parsed.endpoints[e]) == expected

    for texel in decompress_block(block):
        assert list(texel) == expected


# Palettes between a black (0) and a white (255) endpoint
RAMP_2 = [0, 84, 171, 255]
RAMP_3 = [0, 36, 72, 108, 147, 183, 219, 255]

# Subset 0 and subset 2 run black -> white, subset 1 runs white -> black
WHITE_ENDPOINTS = {1, 2, 5}


def pack_indices(pos, values, bits, anchors):
    """Index field fields starting at pos; anchor texels store one bit fewer"""
    parts = []
    for texel, value in enumerate(values):
        width = bits - 1 if texel in anchors else bits
        assert value < (1 << width)
        parts.append((pos, width, value))
        pos += width
    return parts, pos


def encode_grey(mode, partition, anchors, indices, indices2=()):
    """
    Build a grey block whose endpoints are either black or full scale white.
    Shared p-bits are left clear, so mode 1 whites expand to 253.
    """
    pos = mode.mode + 1
    parts = [(0, pos, 1 << mode.mode), (pos, mode.partition_bits, partition)]
    pos += mode.partition_bits + mode.rotation_bits + mode.index_selection_bits
    num_endpoints = 2 * mode.subsets
    for bits in [mode.color_bits] * 3 + [mode.alpha_bits]:
        if not bits:
            continue
        for e in range(num_endpoints):
            parts.append((pos, bits, (1 << bits) - 1 if e in WHITE_ENDPOINTS else 0))
            pos += bits

    if mode.endpoint_pbits:
        for e in range(num_endpoints):
            parts.append((pos + e, 1, 1 if e in WHITE_ENDPOINTS else 0))
        pos += num_endpoints
    elif mode.shared_pbits:
        pos += mode.subsets

    index_parts, pos = pack_indices(pos, indices, mode.index_bits, anchors)
    parts += index_parts
    if mode.index2_bits:
        index_parts, pos = pack_indices(pos, indices2, mode.index2_bits, (0,))
        parts += index_parts
    assert pos == 128
    return pack(*parts)


INDICES_2 = [1, 3, 2, 0, 3, 1, 0, 2, 1, 2, 3, 0, 2, 1, 3, 0]
INDICES_3 = [3, 6, 1, 7, 0, 5, 2, 4, 7, 1, 6, 3, 5, 0, 4, 2]

# mode: (partition, anchor texels, primary indices, secondary indices, expected grey, expected alpha)
REFERENCE_BLOCKS = {
    0: (1, (0, 3, 8), [3, 6, 1, 2, 7, 0, 5, 4, 1, 6, 3, 7, 2, 5, 0, 4], (),
        [108, 219, 36, 183, 255, 0, 72, 108, 36, 219, 147, 0, 72, 183, 0, 108], [255] * 16),
    1: (17, (0, 2), INDICES_3, (),
        [107, 36, 217, 0, 0, 182, 71, 107, 253, 36, 217, 107, 182, 0, 146, 71], [255] * 16),
    2: (7, (0, 8, 15), INDICES_2, (),
        [84, 255, 84, 255, 255, 84, 255, 84, 84, 171, 0, 255, 171, 84, 0, 255], [255] * 16),
    3: (35, (0, 8), INDICES_2, (),
        [84, 255, 84, 255, 255, 84, 255, 84, 171, 84, 255, 0, 84, 171, 255, 0], [255] * 16),
    4: (0, (0,), INDICES_2, INDICES_3,
        [84, 255, 171, 0, 255, 84, 0, 171, 84, 171, 255, 0, 171, 84, 255, 0],
        [108, 219, 36, 255, 0, 183, 72, 147, 255, 36, 219, 108, 183, 0, 147, 72]),
    5: (0, (0,), INDICES_2, [0, 2, 3, 1, 2, 3, 1, 0, 3, 2, 1, 0, 1, 2, 3, 0],
        [84, 255, 171, 0, 255, 84, 0, 171, 84, 171, 255, 0, 171, 84, 255, 0],
        [0, 171, 255, 84, 171, 255, 84, 0, 255, 171, 84, 0, 84, 171, 255, 0]),
    6: (0, (0,), [5, 15, 0, 9, 3, 12, 7, 1, 14, 8, 2, 11, 6, 13, 4, 10], (),
        [84, 255, 0, 151, 52, 203, 120, 16, 239, 135, 36, 187, 104, 219, 68, 171],
        [84, 255, 0, 151, 52, 203, 120, 16, 239, 135, 36, 187, 104, 219, 68, 171]),
    7: (34, (0, 6), [0, 2, 3, 1, 2, 3, 1, 0, 3, 2, 1, 0, 1, 2, 3, 0], (),
        [0, 84, 255, 171, 84, 255, 171, 0, 255, 84, 84, 255, 171, 171, 0, 0],
        [0, 84, 255, 171, 84, 255, 171, 0, 255, 84, 84, 255, 171, 171, 0, 0]),
}


@pytest.mark.parametrize('mode', sorted(REFERENCE_BLOCKS))
def test_mode_reference_block(mode):
    partition, anchors, indices, indices2, grey, alpha = REFERENCE_BLOCKS[mode]
    block = encode_grey(BC7_MODES[mode], partition, anchors, indices, indices2)

    parsed = parse_block(block)
    assert parsed.mode.mode == mode
    assert parsed.partition_index == partition
    assert [parsed.get_color_index(i) for i in range(16)] == indices
    if indices2:
        assert [parsed.get_alpha_index(i) for i in range(16)] == list(indices2)

    texels = decompress_block(block)
    assert list(texels[:, 0]) == grey
    assert list(texels[:, 1]) == grey
    assert list(texels[:, 2]) == grey
    assert list(texels[:, 3]) == alpha


def test_three_subset_anchors_shift_later_indices():
    # Mode 0, partition 1 anchors texels 3 and 8 besides texel 0
    parsed = parse_block(encode_grey(BC7_MODES[0], 1, (0, 3, 8), REFERENCE_BLOCKS[0][2]))
    start = parsed.index_start
    assert parsed.index2_start == start + 45
    assert parsed.get_partition_index(3) == 1
    assert parsed.get_partition_index(8) == 2
    assert parsed.get_color_index(4) == 7
    assert parsed.get_color_index(9) == 6
