"""purebptc - BC6H and BC7 (BPTC) texture block decoder"""

__version__ = "0.1.0"

# Block-level codecs
from . import bc6h, bc7
from .bc6h import BC6HMode, BC6HParsedBlock
from .bc7 import BC7Mode, BC7ParsedBlock

# Bit access and shared tables
from .bitview import BlockBitView
from .partitions import PARTITION_TABLE, ANCHOR_TABLE

# Texture-level decompressors
from .decompressors import (
    TextureDecompressor,
    BC6HDecompressor,
    BC7Decompressor,
    get_decompressor,
)

# Enumerations
from .enums import DXGI_FORMAT, BC7Rotation

__all__ = [
    '__version__',
    'bc6h',
    'bc7',
    'BC6HMode',
    'BC6HParsedBlock',
    'BC7Mode',
    'BC7ParsedBlock',
    'BlockBitView',
    'PARTITION_TABLE',
    'ANCHOR_TABLE',
    'TextureDecompressor',
    'BC6HDecompressor',
    'BC7Decompressor',
    'get_decompressor',
    'DXGI_FORMAT',
    'BC7Rotation',
]
