"""BC7 (BPTC unorm) block parsing and decoding"""
from typing import Optional, Tuple
import numpy as np
from numba import jit

from .bitview import _read_bits, as_block_array
from .bptc import expand_quantized, interpolate
from .enums import BC7Rotation
from .partitions import PARTITION_TABLE, get_index_bit_count, get_index_offset

TEXELS = 16
CHANNELS = 4
MAX_ENDPOINTS = 6


class BC7Mode:
    """
    One of the eight BC7 block layouts.

    See:
    https://registry.khronos.org/DataFormat/specs/1.3/dataformat.1.3.html#bptc_bc7
    https://learn.microsoft.com/en-us/windows/win32/direct3d11/bc7-format
    """
    def __init__(self, mode: int, subsets: int, partition_bits: int, rotation_bits: int,
                 index_selection_bits: int, color_bits: int, alpha_bits: int, endpoint_pbits: int,
                 shared_pbits: int, index_bits: int, index2_bits: int) -> None:
        self.mode: int = mode
        self.subsets: int = subsets  # Number of endpoint pairs
        self.partition_bits: int = partition_bits
        self.rotation_bits: int = rotation_bits
        self.index_selection_bits: int = index_selection_bits
        self.color_bits: int = color_bits  # Stored RGB precision, before p-bits
        self.alpha_bits: int = alpha_bits  # 0 when alpha is always 255
        self.endpoint_pbits: int = endpoint_pbits  # One p-bit per endpoint
        self.shared_pbits: int = shared_pbits  # One p-bit per subset
        self.index_bits: int = index_bits  # Primary index field
        self.index2_bits: int = index2_bits  # Secondary index field, 0 if absent

    def __repr__(self) -> str:
        return f"BC7Mode(mode={self.mode}, subsets={self.subsets})"

    @property
    def has_pbits(self) -> bool:
        return bool(self.endpoint_pbits or self.shared_pbits)

    def as_row(self) -> Tuple[int, ...]:
        return (self.subsets, self.partition_bits, self.rotation_bits, self.index_selection_bits,
                self.color_bits, self.alpha_bits, self.endpoint_pbits, self.shared_pbits,
                self.index_bits, self.index2_bits)

    @classmethod
    def from_block(cls, block) -> Optional['BC7Mode']:
        """Mode of a block: the position of the lowest set bit of byte 0"""
        mode = _get_mode_jit(as_block_array(block))
        if mode < 0:
            return None
        return BC7_MODES[mode]


BC7_MODES: Tuple[BC7Mode, ...] = (
    BC7Mode(0, 3, 4, 0, 0, 4, 0, 1, 0, 3, 0),
    BC7Mode(1, 2, 6, 0, 0, 6, 0, 0, 1, 3, 0),
    BC7Mode(2, 3, 6, 0, 0, 5, 0, 0, 0, 2, 0),
    BC7Mode(3, 2, 6, 0, 0, 7, 0, 1, 0, 2, 0),
    BC7Mode(4, 1, 0, 2, 1, 5, 6, 0, 0, 2, 3),
    BC7Mode(5, 1, 0, 2, 0, 7, 8, 0, 0, 2, 2),
    BC7Mode(6, 1, 0, 0, 0, 7, 7, 1, 0, 4, 0),
    BC7Mode(7, 2, 6, 0, 0, 5, 5, 1, 0, 2, 0),
)

# Columns follow BC7Mode.as_row()
MODE_TABLE = np.array([mode.as_row() for mode in BC7_MODES], dtype=np.int64)


@jit(nopython=True, cache=True)
def _get_mode_jit(block_data):
    """Lowest set bit of the first byte, -1 for the reserved all-zero prefix"""
    mode_bits = block_data[0]
    for m in range(8):
        if mode_bits & (1 << m):
            return m
    return -1


@jit(nopython=True, cache=True)
def _parse_block_jit(block_data, endpoints):
    """
    Parse one BC7 block into 8-bit RGBA endpoints.

    endpoints must be a (6, 4) int64 array. Returns
    (mode, partition, rotation, index_selection, index_start, index2_start)
    with mode -1 for reserved blocks.
    """
    mode = _get_mode_jit(block_data)
    if mode < 0:
        return -1, 0, 0, 0, 0, 0

    num_subsets = MODE_TABLE[mode, 0]
    color_bits = MODE_TABLE[mode, 4]
    alpha_bits = MODE_TABLE[mode, 5]
    endpoint_pbits = MODE_TABLE[mode, 6]
    shared_pbits = MODE_TABLE[mode, 7]
    index_bits = MODE_TABLE[mode, 8]
    num_endpoints = 2 * num_subsets

    bit_pos = mode + 1
    partition = _read_bits(block_data, bit_pos, MODE_TABLE[mode, 1])
    bit_pos += MODE_TABLE[mode, 1]
    rotation = _read_bits(block_data, bit_pos, MODE_TABLE[mode, 2])
    bit_pos += MODE_TABLE[mode, 2]
    index_selection = _read_bits(block_data, bit_pos, MODE_TABLE[mode, 3])
    bit_pos += MODE_TABLE[mode, 3]

    # All R endpoints, then G, then B, then A
    endpoints[:, :] = 0
    for c in range(3):
        for e in range(num_endpoints):
            endpoints[e, c] = _read_bits(block_data, bit_pos, color_bits)
            bit_pos += color_bits
    if alpha_bits:
        for e in range(num_endpoints):
            endpoints[e, 3] = _read_bits(block_data, bit_pos, alpha_bits)
            bit_pos += alpha_bits

    # Append p-bits below the stored precision
    if endpoint_pbits or shared_pbits:
        for e in range(num_endpoints):
            if endpoint_pbits:
                p = _read_bits(block_data, bit_pos + e, 1)
            else:
                p = _read_bits(block_data, bit_pos + e // 2, 1)
            for c in range(4):
                endpoints[e, c] = (endpoints[e, c] << 1) | p
        bit_pos += num_endpoints if endpoint_pbits else num_subsets
        color_bits += 1
        if alpha_bits:
            alpha_bits += 1

    for e in range(num_endpoints):
        for c in range(3):
            endpoints[e, c] = expand_quantized(endpoints[e, c], color_bits, 8)
        if alpha_bits:
            endpoints[e, 3] = expand_quantized(endpoints[e, 3], alpha_bits, 8)
        else:
            endpoints[e, 3] = 255

    # One bit per subset is saved on the anchor texels
    index2_start = bit_pos + TEXELS * index_bits - num_subsets
    return mode, partition, rotation, index_selection, bit_pos, index2_start


@jit(nopython=True, cache=True)
def _read_index_jit(block_data, start, num_subsets, partition, bit_count, texel):
    """Read one texel's palette index from an index field starting at start"""
    if bit_count == 0:
        return 0
    offset = start + get_index_offset(num_subsets, partition, bit_count, texel)
    count = get_index_bit_count(num_subsets, partition, bit_count, texel)
    return _read_bits(block_data, offset, count)


@jit(nopython=True, cache=True)
def _decode_block_jit(block_data, output):
    """
    Decode a single BC7 block into RGBA8 texels.

    output is a (16, 4) uint8 array. Returns False (and zeroes output) for
    reserved blocks.
    """
    endpoints = np.zeros((MAX_ENDPOINTS, CHANNELS), dtype=np.int64)
    mode, partition, rotation, index_selection, index_start, index2_start = _parse_block_jit(block_data, endpoints)
    if mode < 0:
        output[:, :] = 0
        return False

    num_subsets = MODE_TABLE[mode, 0]
    index_bits = MODE_TABLE[mode, 8]
    index2_bits = MODE_TABLE[mode, 9]

    for i in range(TEXELS):
        subset = 0
        if num_subsets > 1:
            subset = PARTITION_TABLE[num_subsets, partition, i]
        e0 = 2 * subset
        e1 = e0 + 1

        primary = _read_index_jit(block_data, index_start, num_subsets, partition, index_bits, i)
        if index2_bits == 0:
            color_index = primary
            color_bits = index_bits
            alpha_index = primary
            alpha_bits = index_bits
        else:
            secondary = _read_index_jit(block_data, index2_start, num_subsets, partition, index2_bits, i)
            if index_selection:
                color_index = secondary
                color_bits = index2_bits
                alpha_index = primary
                alpha_bits = index_bits
            else:
                color_index = primary
                color_bits = index_bits
                alpha_index = secondary
                alpha_bits = index2_bits

        r = interpolate(endpoints[e0, 0], endpoints[e1, 0], color_index, color_bits)
        g = interpolate(endpoints[e0, 1], endpoints[e1, 1], color_index, color_bits)
        b = interpolate(endpoints[e0, 2], endpoints[e1, 2], color_index, color_bits)
        a = interpolate(endpoints[e0, 3], endpoints[e1, 3], alpha_index, alpha_bits)

        if rotation == 1:
            r, a = a, r
        elif rotation == 2:
            g, a = a, g
        elif rotation == 3:
            b, a = a, b

        output[i, 0] = r
        output[i, 1] = g
        output[i, 2] = b
        output[i, 3] = a

    return True


class BC7ParsedBlock:
    """Endpoints and index layout of one parsed BC7 block"""
    def __init__(self, block_data: np.ndarray, mode: BC7Mode, partition_index: int, rotation: int,
                 index_selection: int, endpoints: np.ndarray, index_start: int, index2_start: int) -> None:
        self.mode: BC7Mode = mode
        self.partition_index: int = partition_index
        self.rotation: BC7Rotation = BC7Rotation(rotation)
        self.index_selection: int = index_selection
        self.endpoints: np.ndarray = endpoints  # (2 * subsets, 4), RGBA8
        self.index_start: int = index_start
        self.index2_start: int = index2_start
        self._block_data = block_data

    @property
    def color_index_bit_count(self) -> int:
        if self.index_selection and self.mode.index2_bits:
            return self.mode.index2_bits
        return self.mode.index_bits

    @property
    def alpha_index_bit_count(self) -> int:
        if self.mode.index2_bits and not self.index_selection:
            return self.mode.index2_bits
        return self.mode.index_bits

    def get_partition_index(self, texel: int) -> int:
        """Subset that texel belongs to"""
        if self.mode.subsets == 1:
            return 0
        return int(PARTITION_TABLE[self.mode.subsets, self.partition_index, texel])

    def _read_index(self, secondary: bool, texel: int) -> int:
        if secondary:
            start, bit_count = self.index2_start, self.mode.index2_bits
        else:
            start, bit_count = self.index_start, self.mode.index_bits
        return int(_read_index_jit(self._block_data, start, self.mode.subsets, self.partition_index, bit_count, texel))

    def get_color_index(self, texel: int) -> int:
        return self._read_index(bool(self.index_selection and self.mode.index2_bits), texel)

    def get_alpha_index(self, texel: int) -> int:
        return self._read_index(bool(self.mode.index2_bits and not self.index_selection), texel)


def parse_block(block) -> Optional[BC7ParsedBlock]:
    """
    Parse a BC7 block.

    Returns:
        The parsed block, or None if byte 0 is zero (reserved mode)
    """
    block_data = as_block_array(block)
    endpoints = np.zeros((MAX_ENDPOINTS, CHANNELS), dtype=np.int64)
    mode, partition, rotation, index_selection, index_start, index2_start = _parse_block_jit(block_data, endpoints)
    if mode < 0:
        return None

    bc7_mode = BC7_MODES[mode]
    return BC7ParsedBlock(block_data, bc7_mode, int(partition), int(rotation), int(index_selection),
                          endpoints[:2 * bc7_mode.subsets].astype(np.uint8), int(index_start), int(index2_start))


def decompress_block(block, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Decode one BC7 block to 16 RGBA8 texels in row-major order.

    Args:
        block: At least 16 bytes of block data
        out: Optional uint8 buffer with room for 64 values; filled in place

    Returns:
        uint8 array of shape (16, 4), or out when given. Reserved blocks
        decode to all zeros.
    """
    block_data = as_block_array(block)
    if out is not None and (out.dtype != np.uint8 or out.size < TEXELS * CHANNELS):
        raise ValueError(f"Expected a uint8 buffer of at least {TEXELS * CHANNELS} values, "
                         f"got {out.dtype} with {out.size}")

    texels = np.empty((TEXELS, CHANNELS), dtype=np.uint8)
    _decode_block_jit(block_data, texels)

    if out is None:
        return texels
    out.flat[:TEXELS * CHANNELS] = texels.ravel()
    return out
