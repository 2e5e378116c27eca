"""Bit-level access to 128-bit compressed blocks"""
import numpy as np
from numba import jit

BLOCK_SIZE = 16


@jit(nopython=True, cache=True)
def _read_bit(data, pos):
    """Read a single bit at absolute bit position pos"""
    return (data[pos >> 3] >> (pos & 7)) & 1


@jit(nopython=True, cache=True)
def _read_bits(data, offset, count):
    """Read count bits from data starting at bit offset"""
    byte_offset = offset // 8
    bit_offset = offset % 8

    result = 0
    bits_read = 0

    while bits_read < count:
        if byte_offset >= len(data):
            # Bits past the end of the block read as zero
            break

        byte_val = data[byte_offset]
        bits_available = 8 - bit_offset
        bits_to_read = min(count - bits_read, bits_available)

        mask = (1 << bits_to_read) - 1
        bits = (byte_val >> bit_offset) & mask
        result |= bits << bits_read

        bits_read += bits_to_read
        byte_offset += 1
        bit_offset = 0

    return result


def as_block_array(block) -> np.ndarray:
    """
    View the first 16 bytes of a bytes-like object as a uint8 array.

    Raises:
        ValueError: if fewer than 16 bytes are available
    """
    if len(block) < BLOCK_SIZE:
        raise ValueError(f"Expected {BLOCK_SIZE} bytes for a compressed block, got {len(block)}")
    if isinstance(block, np.ndarray) and block.dtype == np.uint8 and block.ndim == 1:
        return block[:BLOCK_SIZE]
    return np.frombuffer(block, dtype=np.uint8, count=BLOCK_SIZE)


class BlockBitView:
    """
    Read-only cursor over one 16-byte block.

    Bits are numbered little-endian: bit 0 is the least significant bit of
    byte 0, bit 127 the most significant bit of byte 15.
    """
    def __init__(self, block) -> None:
        view = memoryview(block).cast('B')
        if len(view) < BLOCK_SIZE:
            raise ValueError(f"Expected {BLOCK_SIZE} bytes for a compressed block, got {len(view)}")
        self._view: memoryview = view[:BLOCK_SIZE]

    def __len__(self) -> int:
        return BLOCK_SIZE

    def __getitem__(self, bit_index: int) -> int:
        return self.read_bit(bit_index)

    def read_bit(self, bit_index: int) -> int:
        """Return bit bit_index (0 or 1)"""
        return (self._view[bit_index >> 3] >> (bit_index & 7)) & 1

    def read_bits(self, bit_offset: int, width: int) -> int:
        """
        Read an unsigned integer of width bits starting at bit_offset.

        Args:
            bit_offset: Absolute bit position of the least significant bit
            width: Number of bits to read (1-64)

        Returns:
            The value as a non-negative int. Bits beyond the block read as zero.
        """
        if not 1 <= width <= 64:
            raise ValueError(f"Bit width must be between 1 and 64, got {width}")

        first = bit_offset >> 3
        last = (bit_offset + width + 7) >> 3
        chunk = int.from_bytes(self._view[first:last], 'little')
        return (chunk >> (bit_offset & 7)) & ((1 << width) - 1)
