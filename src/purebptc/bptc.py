"""Interpolation and (un)quantization arithmetic for BPTC blocks"""
import numpy as np
from numba import jit

# Palette weights out of 64, indexed by palette index
WEIGHTS_2 = np.array([0, 21, 43, 64], dtype=np.int64)
WEIGHTS_3 = np.array([0, 9, 18, 27, 37, 46, 55, 64], dtype=np.int64)
WEIGHTS_4 = np.array([0, 4, 9, 13, 17, 21, 26, 30, 34, 38, 43, 47, 51, 55, 60, 64], dtype=np.int64)


@jit(nopython=True, cache=True)
def interpolate(e0, e1, index, index_bits):
    """Interpolate between two endpoints"""
    if index_bits == 2:
        w = WEIGHTS_2[index]
    elif index_bits == 3:
        w = WEIGHTS_3[index]
    elif index_bits == 4:
        w = WEIGHTS_4[index]
    else:
        return e0

    return ((64 - w) * e0 + w * e1 + 32) >> 6


@jit(nopython=True, cache=True)
def sign_extend(value, bits):
    """Interpret the low bits of value as a two's complement integer"""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


@jit(nopython=True, cache=True)
def unquantize(value, bits, signed):
    """
    Rescale a BC6H endpoint component stored with bits of precision to
    16-bit unsigned or 15-bit signed (magnitude) working precision.
    """
    if signed:
        if bits >= 16:
            return value

        negative = value < 0
        if negative:
            value = -value

        if value == 0:
            result = 0
        elif value >= (1 << (bits - 1)) - 1:
            result = 0x7FFF
        else:
            result = ((value << 15) + 0x4000) >> (bits - 1)

        if negative:
            return -result
        return result

    if bits >= 15:
        return value
    if value == 0:
        return 0
    if value == (1 << bits) - 1:
        return 0xFFFF
    return ((value << 16) + 0x8000) >> bits


@jit(nopython=True, cache=True)
def finish_unquantize_bits(value, signed):
    """Scale an interpolated BC6H value to the bit pattern of a half float"""
    if signed:
        # Scale the magnitude by 31/32
        if value < 0:
            value = -(((-value) * 31) >> 5)
        else:
            value = (value * 31) >> 5

        if value < 0:
            return 0x8000 | -value
        return value

    # Scale by 31/64; there is no sign bit to fill
    return (value * 31) >> 6


def finish_unquantize(value: int, signed: bool) -> float:
    """Scale an interpolated BC6H value and widen the resulting half float"""
    return float(np.uint16(finish_unquantize_bits(value, signed)).view(np.float16))


@jit(nopython=True, cache=True)
def expand_quantized(value, from_bits, to_bits):
    """Expand a quantized value to full bit depth using proper bit replication"""
    if from_bits == 0:
        return 0
    if from_bits >= to_bits:
        return value >> (from_bits - to_bits)

    # Replicate the source bits into the low bits so 0->0 and max->max
    # E.g., 5-bit 0b10000 (16) -> 8-bit 0b10000100 (132)
    result = value << (to_bits - from_bits)

    shift = from_bits
    while shift < to_bits:
        result |= result >> shift
        shift *= 2

    return result
