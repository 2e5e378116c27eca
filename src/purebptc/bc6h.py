"""BC6H (BPTC float) block parsing and decoding"""
from typing import Dict, Optional, Tuple
import numpy as np
from numba import jit

from .bitview import BlockBitView, _read_bit, _read_bits, as_block_array
from .bptc import finish_unquantize_bits, interpolate, sign_extend, unquantize
from .partitions import PARTITION_TABLE, get_index_bit_count, get_index_offset

TEXELS = 16
CHANNELS = 3
MAX_ENDPOINTS = 4

# Bit positions fixed for every mode
PARTITION_OFFSET = 77
PARTITION_BITS = 5
INDEX_OFFSET_1_SUBSET = 65
INDEX_OFFSET_2_SUBSETS = 82


class BC6HMode:
    """
    One BC6H block layout.

    See:
    https://registry.khronos.org/DataFormat/specs/1.3/dataformat.1.3.html#bptc_bc6h
    https://learn.microsoft.com/en-us/windows/win32/direct3d11/bc6h-format
    """
    def __init__(self, mode: int, mode_bits: int, partition_bits: int, endpoint_bits: int,
                 delta_bits: Tuple[int, int, int]) -> None:
        self.mode: int = mode  # Selector value
        self.mode_bits: int = mode_bits  # Width of the selector (2 or 5)
        self.partition_bits: int = partition_bits  # 0 for one subset, 5 for two
        self.endpoint_bits: int = endpoint_bits  # Precision of endpoint 0
        self.delta_bits: Tuple[int, int, int] = delta_bits  # Per-channel delta widths, zeros for absolute endpoints

    def __repr__(self) -> str:
        return (f"BC6HMode(mode={self.mode}, mode_bits={self.mode_bits}, partition_bits={self.partition_bits}, "
                f"endpoint_bits={self.endpoint_bits}, delta_bits={self.delta_bits})")

    @property
    def subsets(self) -> int:
        return 1 if self.partition_bits == 0 else 2

    @property
    def has_transformed_endpoints(self) -> bool:
        """True when endpoints 1.. are stored as deltas from endpoint 0"""
        return self.delta_bits[0] != 0

    @property
    def header_end(self) -> int:
        """First bit past the endpoint fields"""
        return PARTITION_OFFSET if self.subsets == 2 else INDEX_OFFSET_1_SUBSET

    @property
    def index_offset(self) -> int:
        return INDEX_OFFSET_2_SUBSETS if self.subsets == 2 else INDEX_OFFSET_1_SUBSET

    @classmethod
    def from_selector(cls, selector: int) -> Optional['BC6HMode']:
        """Look up a mode by its selector value, None for reserved selectors"""
        return BC6H_MODES.get(selector)

    @classmethod
    def from_block(cls, block) -> Optional['BC6HMode']:
        """Decode the mode selector at the start of a block"""
        view = block if isinstance(block, BlockBitView) else BlockBitView(block)
        selector = view.read_bits(0, 2)
        if selector > 1:
            selector = view.read_bits(0, 5)
        return cls.from_selector(selector)


# Keyed by selector: 2-bit for modes 0 and 1, 5-bit for the rest
BC6H_MODES: Dict[int, BC6HMode] = {
    0: BC6HMode(0, 2, 5, 10, (5, 5, 5)),
    1: BC6HMode(1, 2, 5, 7, (6, 6, 6)),
    2: BC6HMode(2, 5, 5, 11, (5, 4, 4)),
    6: BC6HMode(6, 5, 5, 11, (4, 5, 4)),
    10: BC6HMode(10, 5, 5, 11, (4, 4, 5)),
    14: BC6HMode(14, 5, 5, 9, (5, 5, 5)),
    18: BC6HMode(18, 5, 5, 8, (6, 5, 5)),
    22: BC6HMode(22, 5, 5, 8, (5, 6, 5)),
    26: BC6HMode(26, 5, 5, 8, (5, 5, 6)),
    30: BC6HMode(30, 5, 5, 6, (0, 0, 0)),
    3: BC6HMode(3, 5, 0, 10, (0, 0, 0)),
    7: BC6HMode(7, 5, 0, 11, (9, 9, 9)),
    11: BC6HMode(11, 5, 0, 12, (8, 8, 8)),
    15: BC6HMode(15, 5, 0, 16, (4, 4, 4)),
}

# Endpoint fields following the mode bits, in stream order.
# Names follow the DirectX tables: channel r/g/b, endpoint w/x/y/z (0-3).
# ('rw', 9, 0) stores rw[0]..rw[9] in ascending stream order;
# ('rw', 10, 15) stores rw[15]..rw[10], i.e. bit-reversed.
BC6H_LAYOUTS = {
    0: (('gy', 4, 4), ('by', 4, 4), ('bz', 4, 4), ('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0),
        ('rx', 4, 0), ('gz', 4, 4), ('gy', 3, 0), ('gx', 4, 0), ('bz', 0, 0), ('gz', 3, 0),
        ('bx', 4, 0), ('bz', 1, 1), ('by', 3, 0), ('ry', 4, 0), ('bz', 2, 2), ('rz', 4, 0),
        ('bz', 3, 3)),
    1: (('gy', 5, 5), ('gz', 4, 4), ('gz', 5, 5), ('rw', 6, 0), ('bz', 0, 0), ('bz', 1, 1),
        ('by', 4, 4), ('gw', 6, 0), ('by', 5, 5), ('bz', 2, 2), ('gy', 4, 4), ('bw', 6, 0),
        ('bz', 3, 3), ('bz', 5, 5), ('bz', 4, 4), ('rx', 5, 0), ('gy', 3, 0), ('gx', 5, 0),
        ('gz', 3, 0), ('bx', 5, 0), ('by', 3, 0), ('ry', 5, 0), ('rz', 5, 0)),
    2: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 4, 0), ('rw', 10, 10), ('gy', 3, 0),
        ('gx', 3, 0), ('gw', 10, 10), ('bz', 0, 0), ('gz', 3, 0), ('bx', 3, 0), ('bw', 10, 10),
        ('bz', 1, 1), ('by', 3, 0), ('ry', 4, 0), ('bz', 2, 2), ('rz', 4, 0), ('bz', 3, 3)),
    6: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 3, 0), ('rw', 10, 10), ('gz', 4, 4),
        ('gy', 3, 0), ('gx', 4, 0), ('gw', 10, 10), ('gz', 3, 0), ('bx', 3, 0), ('bw', 10, 10),
        ('bz', 1, 1), ('by', 3, 0), ('ry', 3, 0), ('bz', 0, 0), ('bz', 2, 2), ('rz', 3, 0),
        ('gy', 4, 4), ('bz', 3, 3)),
    10: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 3, 0), ('rw', 10, 10), ('by', 4, 4),
         ('gy', 3, 0), ('gx', 3, 0), ('gw', 10, 10), ('bz', 0, 0), ('gz', 3, 0), ('bx', 4, 0),
         ('bw', 10, 10), ('by', 3, 0), ('ry', 3, 0), ('bz', 1, 1), ('bz', 2, 2), ('rz', 3, 0),
         ('bz', 4, 4), ('bz', 3, 3)),
    14: (('rw', 8, 0), ('by', 4, 4), ('gw', 8, 0), ('gy', 4, 4), ('bw', 8, 0), ('bz', 4, 4),
         ('rx', 4, 0), ('gz', 4, 4), ('gy', 3, 0), ('gx', 4, 0), ('bz', 0, 0), ('gz', 3, 0),
         ('bx', 4, 0), ('bz', 1, 1), ('by', 3, 0), ('ry', 4, 0), ('bz', 2, 2), ('rz', 4, 0),
         ('bz', 3, 3)),
    18: (('rw', 7, 0), ('gz', 4, 4), ('by', 4, 4), ('gw', 7, 0), ('bz', 2, 2), ('gy', 4, 4),
         ('bw', 7, 0), ('bz', 3, 3), ('bz', 4, 4), ('rx', 5, 0), ('gy', 3, 0), ('gx', 4, 0),
         ('bz', 0, 0), ('gz', 3, 0), ('bx', 4, 0), ('bz', 1, 1), ('by', 3, 0), ('ry', 5, 0),
         ('rz', 5, 0)),
    22: (('rw', 7, 0), ('bz', 0, 0), ('by', 4, 4), ('gw', 7, 0), ('gy', 5, 5), ('gy', 4, 4),
         ('bw', 7, 0), ('gz', 5, 5), ('bz', 4, 4), ('rx', 4, 0), ('gz', 4, 4), ('gy', 3, 0),
         ('gx', 5, 0), ('gz', 3, 0), ('bx', 4, 0), ('bz', 1, 1), ('by', 3, 0), ('ry', 4, 0),
         ('bz', 2, 2), ('rz', 4, 0), ('bz', 3, 3)),
    26: (('rw', 7, 0), ('bz', 1, 1), ('by', 4, 4), ('gw', 7, 0), ('by', 5, 5), ('gy', 4, 4),
         ('bw', 7, 0), ('bz', 5, 5), ('bz', 4, 4), ('rx', 4, 0), ('gz', 4, 4), ('gy', 3, 0),
         ('gx', 4, 0), ('bz', 0, 0), ('gz', 3, 0), ('bx', 5, 0), ('by', 3, 0), ('ry', 4, 0),
         ('bz', 2, 2), ('rz', 4, 0), ('bz', 3, 3)),
    30: (('rw', 5, 0), ('gz', 4, 4), ('bz', 0, 0), ('bz', 1, 1), ('by', 4, 4), ('gw', 5, 0),
         ('gy', 5, 5), ('by', 5, 5), ('bz', 2, 2), ('gy', 4, 4), ('bw', 5, 0), ('gz', 5, 5),
         ('bz', 3, 3), ('bz', 5, 5), ('bz', 4, 4), ('rx', 5, 0), ('gy', 3, 0), ('gx', 5, 0),
         ('gz', 3, 0), ('bx', 5, 0), ('by', 3, 0), ('ry', 5, 0), ('rz', 5, 0)),
    3: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 9, 0), ('gx', 9, 0), ('bx', 9, 0)),
    7: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 8, 0), ('rw', 10, 10), ('gx', 8, 0),
        ('gw', 10, 10), ('bx', 8, 0), ('bw', 10, 10)),
    11: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 7, 0), ('rw', 10, 11), ('gx', 7, 0),
         ('gw', 10, 11), ('bx', 7, 0), ('bw', 10, 11)),
    15: (('rw', 9, 0), ('gw', 9, 0), ('bw', 9, 0), ('rx', 3, 0), ('rw', 10, 15), ('gx', 3, 0),
         ('gw', 10, 15), ('bx', 3, 0), ('bw', 10, 15)),
}

_CHANNEL_NAMES = 'rgb'
_ENDPOINT_NAMES = 'wxyz'


def field_index(name: str) -> int:
    """Flat endpoint-component index (endpoint * 3 + channel) of a field name"""
    return _ENDPOINT_NAMES.index(name[1]) * CHANNELS + _CHANNEL_NAMES.index(name[0])


def _build_layout_table() -> Tuple[np.ndarray, np.ndarray]:
    """
    Compile the layouts into lookup arrays indexed by [selector, bit position].

    Returns:
        (field, shift) arrays of shape (32, 82); field is -1 for bits that do
        not belong to an endpoint.
    """
    fields = np.full((32, PARTITION_OFFSET + PARTITION_BITS), -1, dtype=np.int64)
    shifts = np.zeros((32, PARTITION_OFFSET + PARTITION_BITS), dtype=np.int64)
    for selector, segments in BC6H_LAYOUTS.items():
        pos = BC6H_MODES[selector].mode_bits
        for name, msb, lsb in segments:
            step = 1 if msb >= lsb else -1
            for bit in range(lsb, msb + step, step):
                fields[selector, pos] = field_index(name)
                shifts[selector, pos] = bit
                pos += 1
    return fields, shifts


def _build_mode_table() -> np.ndarray:
    """Mode parameters as [selector] -> (mode_bits, partition_bits, endpoint_bits, dr, dg, db)"""
    table = np.zeros((32, 6), dtype=np.int64)
    for selector, mode in BC6H_MODES.items():
        table[selector] = (mode.mode_bits, mode.partition_bits, mode.endpoint_bits) + mode.delta_bits
    return table


LAYOUT_FIELDS, LAYOUT_SHIFTS = _build_layout_table()
MODE_TABLE = _build_mode_table()


@jit(nopython=True, cache=True)
def _parse_block_jit(block_data, signed, endpoints):
    """
    Parse one BC6H block into unquantized endpoints.

    endpoints must be a (4, 3) int64 array. Returns (selector, partition, index)
    where selector is -1 for reserved modes.
    """
    selector = _read_bits(block_data, 0, 2)
    if selector > 1:
        selector = _read_bits(block_data, 0, 5)

    mode_bits = MODE_TABLE[selector, 0]
    if mode_bits == 0:
        return -1, 0, 0

    partition_bits = MODE_TABLE[selector, 1]
    endpoint_bits = MODE_TABLE[selector, 2]
    transformed = MODE_TABLE[selector, 3] != 0
    num_endpoints = 4 if partition_bits else 2
    header_end = PARTITION_OFFSET if partition_bits else INDEX_OFFSET_1_SUBSET

    # Gather the scattered endpoint bits
    endpoints[:, :] = 0
    for pos in range(mode_bits, header_end):
        field = LAYOUT_FIELDS[selector, pos]
        if field >= 0:
            endpoints[field // 3, field % 3] |= _read_bit(block_data, pos) << LAYOUT_SHIFTS[selector, pos]

    mask = (1 << endpoint_bits) - 1
    for c in range(3):
        if signed:
            endpoints[0, c] = sign_extend(endpoints[0, c], endpoint_bits)

        for e in range(1, num_endpoints):
            if transformed:
                delta = sign_extend(endpoints[e, c], MODE_TABLE[selector, 3 + c])
                endpoints[e, c] = (endpoints[0, c] + delta) & mask
            if signed:
                endpoints[e, c] = sign_extend(endpoints[e, c], endpoint_bits)

        for e in range(num_endpoints):
            endpoints[e, c] = unquantize(endpoints[e, c], endpoint_bits, signed)

    if partition_bits:
        partition = _read_bits(block_data, PARTITION_OFFSET, PARTITION_BITS)
        index = _read_bits(block_data, INDEX_OFFSET_2_SUBSETS, 64)
    else:
        partition = 0
        index = _read_bits(block_data, INDEX_OFFSET_1_SUBSET, 64)

    return selector, partition, index


@jit(nopython=True, cache=True)
def _get_color_index_jit(index, num_subsets, partition, bit_count, texel):
    """Extract one texel's palette index from the packed index field"""
    if bit_count == 0:
        return 0
    offset = get_index_offset(num_subsets, partition, bit_count, texel)
    count = get_index_bit_count(num_subsets, partition, bit_count, texel)
    return (index >> offset) & ((1 << count) - 1)


@jit(nopython=True, cache=True)
def _decode_block_jit(block_data, signed, output):
    """
    Decode a single BC6H block into half-float bit patterns.

    output is a (16, 3) uint16 array. Returns False (and zeroes output) when
    the block uses a reserved mode.
    """
    endpoints = np.zeros((MAX_ENDPOINTS, CHANNELS), dtype=np.int64)
    selector, partition, index = _parse_block_jit(block_data, signed, endpoints)
    if selector < 0:
        output[:, :] = 0
        return False

    num_subsets = 2 if MODE_TABLE[selector, 1] else 1
    bit_count = 3 if num_subsets == 2 else 4

    for i in range(TEXELS):
        subset = PARTITION_TABLE[num_subsets, partition, i] if num_subsets == 2 else 0
        e0 = 2 * subset
        e1 = e0 + 1
        color_index = _get_color_index_jit(index, num_subsets, partition, bit_count, i)

        for c in range(CHANNELS):
            value = interpolate(endpoints[e0, c], endpoints[e1, c], color_index, bit_count)
            output[i, c] = finish_unquantize_bits(value, signed)

    return True


class BC6HParsedBlock:
    """Endpoints and index data of one parsed BC6H block"""
    def __init__(self, mode: BC6HMode, partition_index: int, endpoints: np.ndarray, index: int) -> None:
        self.mode: BC6HMode = mode
        self.partition_index: int = partition_index
        self.endpoints: np.ndarray = endpoints  # (2 * subsets, 3), unquantized
        self.index: int = index  # Packed texel indices, anchor bits removed

    @property
    def color_index_bit_count(self) -> int:
        return 4 if self.mode.subsets == 1 else 3

    def get_partition_index(self, texel: int) -> int:
        """Subset that texel belongs to"""
        if self.mode.subsets == 1:
            return 0
        return int(PARTITION_TABLE[self.mode.subsets, self.partition_index, texel])

    def get_index_offset(self, bit_count: int, texel: int) -> int:
        return int(get_index_offset(self.mode.subsets, self.partition_index, bit_count, texel))

    def get_index_bit_count(self, bit_count: int, texel: int) -> int:
        return int(get_index_bit_count(self.mode.subsets, self.partition_index, bit_count, texel))

    def get_color_index(self, bit_count: int, texel: int) -> int:
        return int(_get_color_index_jit(self.index, self.mode.subsets, self.partition_index, bit_count, texel))


def parse_block(block, signed: bool = False) -> Optional[BC6HParsedBlock]:
    """
    Parse a BC6H block.

    Args:
        block: At least 16 bytes of block data
        signed: True for BC6H_SF16, False for BC6H_UF16

    Returns:
        The parsed block, or None if the block uses a reserved mode
    """
    block_data = as_block_array(block)
    endpoints = np.zeros((MAX_ENDPOINTS, CHANNELS), dtype=np.int64)
    selector, partition, index = _parse_block_jit(block_data, signed, endpoints)
    if selector < 0:
        return None

    mode = BC6H_MODES[int(selector)]
    return BC6HParsedBlock(mode, int(partition), endpoints[:2 * mode.subsets].copy(), int(index))


def decompress_block(block, out: Optional[np.ndarray] = None, signed: bool = False) -> np.ndarray:
    """
    Decode one BC6H block to 16 RGB texels in row-major order.

    Args:
        block: At least 16 bytes of block data
        out: Optional float32 buffer with room for 48 values; filled in place
        signed: True for BC6H_SF16, False for BC6H_UF16

    Returns:
        float32 array of shape (16, 3), or out when given. Reserved modes
        decode to all zeros.
    """
    block_data = as_block_array(block)
    if out is not None and (out.dtype != np.float32 or out.size < TEXELS * CHANNELS):
        raise ValueError(f"Expected a float32 buffer of at least {TEXELS * CHANNELS} values, "
                         f"got {out.dtype} with {out.size}")

    half_bits = np.empty((TEXELS, CHANNELS), dtype=np.uint16)
    _decode_block_jit(block_data, signed, half_bits)
    texels = half_bits.view(np.float16).astype(np.float32)

    if out is None:
        return texels
    out.flat[:TEXELS * CHANNELS] = texels.ravel()
    return out
