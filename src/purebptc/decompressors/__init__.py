"""Texture decompressor implementations"""
from ..enums import DXGI_FORMAT
from .base import TextureDecompressor
from .bc6h import BC6HDecompressor
from .bc7 import BC7Decompressor


def get_decompressor(dxgi_format: DXGI_FORMAT) -> TextureDecompressor:
    """
    Create the decompressor for a DXGI format

    Raises:
        NotImplementedError: if the format is not a BC6H or BC7 format
    """
    if dxgi_format in (DXGI_FORMAT.BC6H_UF16, DXGI_FORMAT.BC6H_TYPELESS):
        return BC6HDecompressor(signed=False)
    if dxgi_format == DXGI_FORMAT.BC6H_SF16:
        return BC6HDecompressor(signed=True)
    if dxgi_format in (DXGI_FORMAT.BC7_UNORM, DXGI_FORMAT.BC7_UNORM_SRGB, DXGI_FORMAT.BC7_TYPELESS):
        return BC7Decompressor()
    raise NotImplementedError(f"Decompression not implemented for format {dxgi_format}")


__all__ = [
    'TextureDecompressor',
    'BC6HDecompressor',
    'BC7Decompressor',
    'get_decompressor',
]
