"""Format and block enumerations"""
from enum import IntEnum


class DXGI_FORMAT(IntEnum):
    """DXGI formats of the BPTC family"""
    BC6H_TYPELESS = 94
    BC6H_UF16 = 95
    BC6H_SF16 = 96
    BC7_TYPELESS = 97
    BC7_UNORM = 98
    BC7_UNORM_SRGB = 99


class BC7Rotation(IntEnum):
    """Channel swap applied to a decoded BC7 texel"""
    NO_CHANGE = 0
    SWAP_ALPHA_RED = 1
    SWAP_ALPHA_GREEN = 2
    SWAP_ALPHA_BLUE = 3
