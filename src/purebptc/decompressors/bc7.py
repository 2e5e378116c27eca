"""BC7 texture decompressor"""
import logging
import numpy as np
from numba import jit

from ..bc7 import _decode_block_jit
from .base import TextureDecompressor

log = logging.getLogger(__name__)


@jit(nopython=True, cache=True)
def _process_blocks_jit(blocks, output, blocks_x, blocks_y, width, height):
    """JIT-compiled block processing for BC7 decompression"""
    num_blocks = blocks_x * blocks_y
    block_colors = np.empty((16, 4), dtype=np.uint8)
    invalid = 0

    for block_idx in range(num_blocks):
        block_x = block_idx % blocks_x
        block_y = block_idx // blocks_x

        if not _decode_block_jit(blocks[block_idx], block_colors):
            invalid += 1

        # Copy to output, cropping partial edge blocks
        y_start = block_y * 4
        y_end = min(y_start + 4, height)
        x_start = block_x * 4
        x_end = min(x_start + 4, width)

        for pixel_idx in range(16):
            out_y = y_start + pixel_idx // 4
            out_x = x_start + pixel_idx % 4

            if out_y < y_end and out_x < x_end:
                for c in range(4):
                    output[out_y, out_x, c] = block_colors[pixel_idx, c]

    return invalid


class BC7Decompressor(TextureDecompressor):
    """
    BC7 texture decompressor - Numba JIT

    BC7 is a high-quality block compression format with 8 modes (0-7).
    Each 4x4 block is 16 bytes (128 bits) and can use different encoding modes
    optimized for different content types.
    """

    def decompress(self, data: bytes, width: int, height: int) -> np.ndarray:
        """
        Decompress BC7 texture data to RGBA8

        Returns:
            numpy array of shape (height, width, 4) with dtype uint8 (RGBA)
        """
        blocks, blocks_x, blocks_y = self._load_blocks(data, width, height)

        output = np.zeros((height, width, 4), dtype=np.uint8)
        invalid = _process_blocks_jit(blocks, output, blocks_x, blocks_y, width, height)
        if invalid:
            log.debug("BC7 %dx%d: %d of %d blocks use the reserved mode", width, height, invalid, len(blocks))

        return output
