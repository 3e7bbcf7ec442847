"""Typed, dimensioned parameter values and their on-disk record shape."""
from __future__ import annotations

import math
import struct
from enum import IntEnum
from typing import Sequence

import numpy as np

from c3d_core.codec import NumericCodec, round_single
from c3d_core.protocol import (
    MAX_DIMENSIONS,
    MAX_EXTENT,
    TYPE_BYTE,
    TYPE_CHAR,
    TYPE_FLOAT,
    TYPE_INTEGER,
)

from .errors import DimensionMismatch, MalformedRecord, UnexpectedType
from .records import RawRecord, decode_description, encode_description, encode_record

TEXT_ENCODING = "latin-1"


class ParameterType(IntEnum):
    CHAR = TYPE_CHAR
    BYTE = TYPE_BYTE
    INTEGER = TYPE_INTEGER
    FLOAT = TYPE_FLOAT

    @property
    def width(self) -> int:
        return abs(self.value)


_DTYPES = {
    ParameterType.BYTE: np.int8,
    ParameterType.INTEGER: np.int16,
    ParameterType.FLOAT: np.float64,
}


def _encode_text(value: str) -> bytes:
    try:
        return value.encode(TEXT_ENCODING)
    except UnicodeEncodeError:
        raise ValueError(f"Text {value!r} is not {TEXT_ENCODING}") from None


def _shape_matches(actual: tuple, expected: Sequence[int | None]) -> bool:
    return len(actual) == len(expected) and all(e is None or a == e for a, e in zip(actual, expected))


class Parameter:
    """One value of a parameter section.

    Numeric data is held flat, in file order, as an int8/int16/float64
    numpy array (floats rounded to single precision, see `round_single`);
    text is held as raw bytes. `dimensions` lists extents in
    file order (first extent varies fastest), so the row-major grid view
    has shape ``dimensions[::-1]``. An empty `dimensions` is a scalar.
    """

    def __init__(
        self,
        ptype: ParameterType,
        dimensions: Sequence[int] = (),
        data=b"",
        locked: bool = False,
        description: str = "",
    ):
        self.ptype = ParameterType(ptype)
        self.dimensions = tuple(int(d) for d in dimensions)
        if self.ptype is ParameterType.CHAR:
            self.data = bytes(data)
        else:
            self.data = np.asarray(data, dtype=_DTYPES[self.ptype]).ravel()
            if self.ptype is ParameterType.FLOAT:
                self.data = round_single(self.data)
        self.locked = bool(locked)
        self.description = description
        # (codec, body, state) of the record this was decoded from
        self._source = None

        expected = math.prod(self.dimensions)
        if len(self.data) != expected:
            raise DimensionMismatch(
                f"{len(self.data)} element(s) for dimensions {list(self.dimensions)}"
            )

    # Constructors

    @classmethod
    def float(cls, value: float) -> "Parameter":
        return cls(ParameterType.FLOAT, (), [value])

    @classmethod
    def float_grid(cls, grid) -> "Parameter":
        return cls._grid(ParameterType.FLOAT, grid)

    @classmethod
    def integer(cls, value: int) -> "Parameter":
        return cls(ParameterType.INTEGER, (), [value])

    @classmethod
    def integer_grid(cls, grid) -> "Parameter":
        return cls._grid(ParameterType.INTEGER, grid)

    @classmethod
    def byte(cls, value: int) -> "Parameter":
        return cls(ParameterType.BYTE, (), [value])

    @classmethod
    def byte_grid(cls, grid) -> "Parameter":
        return cls._grid(ParameterType.BYTE, grid)

    @classmethod
    def string(cls, value: str) -> "Parameter":
        raw = _encode_text(value)
        return cls(ParameterType.CHAR, (len(raw),), raw)

    @classmethod
    def strings(cls, values: Sequence[str]) -> "Parameter":
        """Fixed-width text matrix, each entry space padded to the longest."""
        raw = [_encode_text(v) for v in values]
        width = max((len(r) for r in raw), default=0)
        return cls(ParameterType.CHAR, (width, len(raw)), b"".join(r.ljust(width) for r in raw))

    @classmethod
    def _grid(cls, ptype: ParameterType, grid) -> "Parameter":
        arr = np.asarray(grid, dtype=_DTYPES[ptype])
        return cls(ptype, arr.shape[::-1], arr.ravel())

    # Projections

    def _expect(self, ptype: ParameterType) -> None:
        if self.ptype is not ptype:
            raise UnexpectedType(f"expected {ptype.name}, found {self.ptype.name}")

    def _scalar(self, ptype: ParameterType):
        self._expect(ptype)
        if len(self.data) != 1:
            raise DimensionMismatch(
                f"expected a scalar, found dimensions {list(self.dimensions)}"
            )
        return self.data[0].item()

    def _as_grid(self, ptype: ParameterType, shape) -> np.ndarray:
        self._expect(ptype)
        grid = self.data.reshape(self.dimensions[::-1])
        if shape is not None and not _shape_matches(grid.shape, shape):
            raise DimensionMismatch(
                f"expected shape {tuple(shape)}, found {grid.shape} ({len(self.data)} element(s))"
            )
        return grid.copy()

    def as_float(self) -> float:
        return self._scalar(ParameterType.FLOAT)

    def as_integer(self) -> int:
        return self._scalar(ParameterType.INTEGER)

    def as_byte(self) -> int:
        return self._scalar(ParameterType.BYTE)

    def as_float_grid(self, shape=None) -> np.ndarray:
        return self._as_grid(ParameterType.FLOAT, shape)

    def as_integer_grid(self, shape=None) -> np.ndarray:
        return self._as_grid(ParameterType.INTEGER, shape)

    def as_byte_grid(self, shape=None) -> np.ndarray:
        return self._as_grid(ParameterType.BYTE, shape)

    def as_string(self) -> str:
        self._expect(ParameterType.CHAR)
        # [n] or a one-column matrix [n, 1]
        if len(self.dimensions) > 2 or self.dimensions[1:] not in ((), (1,)):
            raise DimensionMismatch(
                f"expected a single string, found dimensions {list(self.dimensions)}"
            )
        return self.data.decode(TEXT_ENCODING).rstrip(" ")

    def as_strings(self) -> list[str]:
        self._expect(ParameterType.CHAR)
        if len(self.dimensions) > 2:
            raise DimensionMismatch(
                f"expected a list of strings, found dimensions {list(self.dimensions)}"
            )
        if len(self.dimensions) < 2:
            return [self.as_string()]
        width, count = self.dimensions
        text = self.data.decode(TEXT_ENCODING)
        return [text[i * width:(i + 1) * width].rstrip(" ") for i in range(count)]

    # Wire format

    def _encode_data(self, codec: NumericCodec) -> bytes:
        if self.ptype is ParameterType.CHAR:
            return self.data
        if self.ptype is ParameterType.BYTE:
            return self.data.tobytes()
        if self.ptype is ParameterType.INTEGER:
            return codec.encode_i16_array(self.data)
        return codec.encode_f32_array(self.data)

    def _encode_body(self, codec: NumericCodec) -> bytes:
        if len(self.dimensions) > MAX_DIMENSIONS:
            raise ValueError(f"{len(self.dimensions)} dimensions, at most {MAX_DIMENSIONS}")
        if any(not 0 <= d <= MAX_EXTENT for d in self.dimensions):
            raise ValueError(f"extents {list(self.dimensions)} outside 0..{MAX_EXTENT}")
        return (
            struct.pack("<bB", self.ptype, len(self.dimensions))
            + bytes(self.dimensions)
            + self._encode_data(codec)
            + encode_description(self.description)
        )

    def write(self, codec: NumericCodec, name: str, group_id: int, locked: bool = False) -> bytes:
        """Serialize as a complete parameter record owned by `group_id`.

        A parameter decoded from a record and left unchanged writes that
        record's body back verbatim, slack bytes and missing description
        byte included, under fresh name, id and offset framing.
        """
        if (
            self._source is not None
            and self._source[0] == codec
            and self._source[2] == self._state()
        ):
            body = self._source[1]
        else:
            try:
                body = self._encode_body(codec)
            except ValueError as e:
                raise ValueError(f"{name}: {e}") from None
        return encode_record(codec, name, abs(group_id), locked, body)

    @classmethod
    def from_record(cls, record: RawRecord, codec: NumericCodec) -> "Parameter":
        body = record.body
        if len(body) < 2:
            raise MalformedRecord("record too short for type and dimension bytes", parameter=record.name)
        code, ndims = struct.unpack_from("<bB", body, 0)
        try:
            ptype = ParameterType(code)
        except ValueError:
            raise MalformedRecord(f"unknown type tag {code}", parameter=record.name) from None

        pos = 2
        if pos + ndims > len(body):
            raise MalformedRecord(f"{ndims} dimension byte(s) run past record end", parameter=record.name)
        dimensions = tuple(body[pos:pos + ndims])
        pos += ndims

        count = math.prod(dimensions)
        nbytes = count * ptype.width
        if pos + nbytes > len(body):
            raise MalformedRecord(
                f"{nbytes} data byte(s) for dimensions {list(dimensions)} run past record end",
                parameter=record.name,
            )
        raw = body[pos:pos + nbytes]
        pos += nbytes

        if ptype is ParameterType.CHAR:
            data = raw
        elif ptype is ParameterType.BYTE:
            data = np.frombuffer(raw, dtype=np.int8)
        elif ptype is ParameterType.INTEGER:
            data = codec.decode_i16_array(raw, count)
        else:
            data = codec.decode_f32_array(raw, count)

        try:
            description = decode_description(body, pos)
        except MalformedRecord as e:
            raise e.located(None, record.name) from None
        p = cls(ptype, dimensions, data, locked=record.locked, description=description)

        # The last record's body runs into block padding; keep only up to
        # the end of its description.
        if record.last and pos < len(body):
            body = body[:pos + 1 + body[pos]]
        p._source = (codec, body, p._state())
        return p

    def _data_bytes(self) -> bytes:
        return self.data if self.ptype is ParameterType.CHAR else self.data.tobytes()

    def _state(self) -> tuple:
        return (self.ptype, self.dimensions, self._data_bytes(), self.description)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Parameter):
            return NotImplemented
        return (
            self.ptype is other.ptype
            and self.dimensions == other.dimensions
            and self._data_bytes() == other._data_bytes()
            and self.locked == other.locked
            and self.description == other.description
        )

    __hash__ = None

    def __repr__(self) -> str:
        if self.ptype is ParameterType.CHAR:
            shown = self.data.decode(TEXT_ENCODING)
        else:
            shown = self.data.tolist()
        return f"Parameter({self.ptype.name}, dims={list(self.dimensions)}, data={shown!r})"
