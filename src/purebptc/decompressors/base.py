"""Base class for texture decompression"""
from abc import ABC, abstractmethod
from typing import Tuple
import numpy as np

from ..bitview import BLOCK_SIZE


class TextureDecompressor(ABC):
    """Base class for texture decompression"""
    @abstractmethod
    def decompress(self, data: bytes, width: int, height: int) -> np.ndarray:
        """
        Decompress texture data

        Args:
            data: Compressed texture data, 4x4 blocks in row-major order
            width: Texture width in pixels
            height: Texture height in pixels

        Returns:
            numpy array of shape (height, width, channels)
        """
        pass

    @staticmethod
    def _load_blocks(data: bytes, width: int, height: int) -> Tuple[np.ndarray, int, int]:
        """
        View compressed data as an array of 16-byte blocks.

        Returns:
            (blocks, blocks_x, blocks_y) where blocks has shape (blocks_x * blocks_y, 16)
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid texture size: {width}x{height}")

        blocks_x = (width + 3) // 4
        blocks_y = (height + 3) // 4
        num_blocks = blocks_x * blocks_y

        if len(data) < num_blocks * BLOCK_SIZE:
            raise ValueError(f"Data too small for {width}x{height} texture: "
                             f"expected {num_blocks * BLOCK_SIZE} bytes, got {len(data)}")

        blocks = np.frombuffer(data, dtype=np.uint8, count=num_blocks * BLOCK_SIZE).reshape(-1, BLOCK_SIZE)
        return blocks, blocks_x, blocks_y
