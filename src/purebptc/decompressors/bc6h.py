"""BC6H texture decompressor"""
import logging
import numpy as np
from numba import jit

from ..bc6h import _decode_block_jit
from .base import TextureDecompressor

log = logging.getLogger(__name__)


@jit(nopython=True, cache=True)
def _process_blocks_jit(blocks, output, blocks_x, blocks_y, width, height, signed):
    """JIT-compiled block processing for BC6H decompression into half-float bits"""
    num_blocks = blocks_x * blocks_y
    block_colors = np.empty((16, 3), dtype=np.uint16)
    invalid = 0

    for block_idx in range(num_blocks):
        block_x = block_idx % blocks_x
        block_y = block_idx // blocks_x

        if not _decode_block_jit(blocks[block_idx], signed, block_colors):
            invalid += 1

        y_start = block_y * 4
        y_end = min(y_start + 4, height)
        x_start = block_x * 4
        x_end = min(x_start + 4, width)

        for pixel_idx in range(16):
            out_y = y_start + pixel_idx // 4
            out_x = x_start + pixel_idx % 4

            if out_y < y_end and out_x < x_end:
                for c in range(3):
                    output[out_y, out_x, c] = block_colors[pixel_idx, c]

    return invalid


class BC6HDecompressor(TextureDecompressor):
    """
    BC6H texture decompressor - Numba JIT

    BC6H stores HDR RGB in 16-byte 4x4 blocks using 14 modes. Texels decode
    to half floats, widened to float32 on output.
    """

    def __init__(self, signed: bool = False) -> None:
        """
        Args:
            signed: True for BC6H_SF16, False for BC6H_UF16
        """
        self.signed: bool = signed

    def decompress(self, data: bytes, width: int, height: int) -> np.ndarray:
        """
        Decompress BC6H texture data to RGB float

        Returns:
            numpy array of shape (height, width, 3) with dtype float32 (RGB)
        """
        blocks, blocks_x, blocks_y = self._load_blocks(data, width, height)

        half_bits = np.zeros((height, width, 3), dtype=np.uint16)
        invalid = _process_blocks_jit(blocks, half_bits, blocks_x, blocks_y, width, height, self.signed)
        if invalid:
            log.debug("BC6H %dx%d: %d of %d blocks use a reserved mode", width, height, invalid, len(blocks))

        return half_bits.view(np.float16).astype(np.float32)
