"""Vendor numeric layouts for C3D parameter data."""
from __future__ import annotations

import math
import struct
from enum import IntEnum

import numpy as np

from c3d_core.protocol import PROCESSOR_DEC, PROCESSOR_INTEL, PROCESSOR_MIPS


class Processor(IntEnum):
    INTEL = PROCESSOR_INTEL
    DEC = PROCESSOR_DEC
    MIPS = PROCESSOR_MIPS


# DEC F-float: sign | 8-bit exponent (bias 128) | 23-bit fraction with a
# hidden leading bit, value = 0.1f * 2**(exp - 128). No subnormals, so
# exponents 1 and 2 fall below IEEE single's normal range; values are
# carried as doubles to keep them exact.
_MANTISSA_BITS = 24


def round_single(values) -> np.ndarray:
    """Round to a 24-bit mantissa, the precision of both float layouts.

    Exact for anything decoded from a file, so it is idempotent; unlike a
    cast to float32 it does not truncate DEC values below 2**-126.
    """
    arr = np.asarray(values, dtype=np.float64)
    mantissa, exponent = np.frexp(arr)
    return np.ldexp(np.round(mantissa * (1 << _MANTISSA_BITS)) / (1 << _MANTISSA_BITS), exponent)


def _dec_bits_to_float(bits: int) -> float:
    # bits: DEC word order already swapped into IEEE position
    exp = (bits >> 23) & 0xFF
    if exp == 0:
        return 0.0
    value = math.ldexp((bits & 0x7FFFFF) | 0x800000, exp - 128 - _MANTISSA_BITS)
    return -value if bits & 0x80000000 else value


def _float_to_dec_bits(value: float) -> int:
    if value == 0.0:
        return 0
    if not math.isfinite(value):
        raise ValueError(f"Value {value!r} is not representable as a DEC float")
    mantissa, exponent = math.frexp(abs(value))
    fraction = round(mantissa * (1 << _MANTISSA_BITS))
    if fraction == 1 << _MANTISSA_BITS:
        fraction >>= 1
        exponent += 1
    exp = exponent + 128
    if exp > 0xFF:
        raise ValueError(f"Value {value!r} is not representable as a DEC float")
    if exp < 1:
        return 0
    sign = 0x80000000 if value < 0 else 0
    return sign | (exp << 23) | (fraction & 0x7FFFFF)


class NumericCodec:
    """Integer/float conversion for one processor layout.

    Selected once per file from the parameter section header and passed
    to every encode/decode call, so nothing else branches on vendor.
    """

    def __init__(self, processor: Processor = Processor.INTEL):
        self.processor = Processor(processor)
        big = self.processor is Processor.MIPS
        self._i16 = ">h" if big else "<h"
        self._f32 = ">f" if big else "<f"
        self._i16_dtype = np.dtype(">i2" if big else "<i2")
        self._f32_dtype = np.dtype(">f4" if big else "<f4")

    @classmethod
    def from_processor_byte(cls, code: int) -> "NumericCodec":
        try:
            return cls(Processor(code))
        except ValueError:
            raise ValueError(f"Unknown processor type byte {code}") from None

    def __repr__(self) -> str:
        return f"NumericCodec({self.processor.name})"

    def __eq__(self, other) -> bool:
        return isinstance(other, NumericCodec) and other.processor is self.processor

    def __hash__(self) -> int:
        return hash(self.processor)

    # Scalars

    def decode_i16(self, b: bytes) -> int:
        return struct.unpack(self._i16, b)[0]

    def encode_i16(self, value: int) -> bytes:
        return struct.pack(self._i16, int(value))

    def decode_f32(self, b: bytes) -> float:
        if self.processor is Processor.DEC:
            return _dec_bits_to_float(struct.unpack("<I", bytes((b[2], b[3], b[0], b[1])))[0])
        return struct.unpack(self._f32, b)[0]

    def encode_f32(self, value: float) -> bytes:
        if self.processor is Processor.DEC:
            word = struct.pack("<I", _float_to_dec_bits(float(value)))
            return bytes((word[2], word[3], word[0], word[1]))
        return struct.pack(self._f32, value)

    # Arrays

    def decode_i16_array(self, b: bytes, count: int) -> np.ndarray:
        return np.frombuffer(b, dtype=self._i16_dtype, count=count).astype(np.int16)

    def encode_i16_array(self, values) -> bytes:
        return np.asarray(values, dtype=np.int16).astype(self._i16_dtype).tobytes()

    def decode_f32_array(self, b: bytes, count: int) -> np.ndarray:
        if self.processor is Processor.DEC:
            words = [self.decode_f32(b[i * 4:i * 4 + 4]) for i in range(count)]
            return np.array(words, dtype=np.float64)
        return np.frombuffer(b, dtype=self._f32_dtype, count=count).astype(np.float64)

    def encode_f32_array(self, values) -> bytes:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if self.processor is Processor.DEC:
            return b"".join(self.encode_f32(v) for v in arr.tolist())
        return arr.astype(self._f32_dtype).tobytes()
