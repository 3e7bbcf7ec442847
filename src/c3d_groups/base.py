"""Declarative typed views over one documented parameter group.

A view is a dataclass whose fields are all optional. Each field names the
parameter it is taken from, how that parameter is projected, and for
grids the documented row-major shape (None in a shape matches any extent).
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import ClassVar, Mapping

import numpy as np

from c3d_core.codec import NumericCodec, round_single
from c3d_params.errors import ParameterError, UnknownGroupReference
from c3d_params.parameter import Parameter


class Kind(Enum):
    FLOAT = "float"
    FLOAT_GRID = "float_grid"
    INTEGER = "integer"
    INTEGER_GRID = "integer_grid"
    BYTE = "byte"
    BYTE_GRID = "byte_grid"
    STRING = "string"
    STRINGS = "strings"


def _project(parameter: Parameter, kind: Kind, shape):
    if kind is Kind.FLOAT:
        return parameter.as_float()
    if kind is Kind.FLOAT_GRID:
        return parameter.as_float_grid(shape)
    if kind is Kind.INTEGER:
        return parameter.as_integer()
    if kind is Kind.INTEGER_GRID:
        return parameter.as_integer_grid(shape)
    if kind is Kind.BYTE:
        return parameter.as_byte()
    if kind is Kind.BYTE_GRID:
        return parameter.as_byte_grid(shape)
    if kind is Kind.STRING:
        return parameter.as_string()
    return parameter.as_strings()


_BUILDERS = {
    Kind.FLOAT: Parameter.float,
    Kind.FLOAT_GRID: Parameter.float_grid,
    Kind.INTEGER: Parameter.integer,
    Kind.INTEGER_GRID: Parameter.integer_grid,
    Kind.BYTE: Parameter.byte,
    Kind.BYTE_GRID: Parameter.byte_grid,
    Kind.STRING: Parameter.string,
    Kind.STRINGS: Parameter.strings,
}


_GRID_DTYPES = {
    Kind.FLOAT_GRID: np.float64,
    Kind.INTEGER_GRID: np.int16,
    Kind.BYTE_GRID: np.int8,
}


def param(name: str, kind: Kind, shape=None):
    """Declare a view field backed by parameter `name`."""
    return field(default=None, metadata={"param": name, "kind": kind, "shape": shape})


def values_equal(a, b) -> bool:
    """Field equality: both absent, or both present and equal.

    Grids compare by flattened row-major content, floats bit for bit
    once rounded to single precision.
    """
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        a, b = np.asarray(a), np.asarray(b)
        if a.dtype != b.dtype:
            return False
        if a.dtype.kind == "f":
            a, b = round_single(a), round_single(b)
        return a.ravel().tobytes() == b.ravel().tobytes()
    if isinstance(a, float) or isinstance(b, float):
        return round_single(a).tobytes() == round_single(b).tobytes()
    return a == b


def _label(f) -> str:
    return f.name.replace("_", " ").title()


@dataclass(eq=False)
class GroupView:
    GROUP: ClassVar[str] = ""

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            dtype = _GRID_DTYPES.get(f.metadata["kind"])
            if value is not None and dtype is not None:
                value = np.asarray(value, dtype=dtype)
                if dtype is np.float64:
                    value = round_single(value)
                setattr(self, f.name, value)

    @classmethod
    def from_store(cls, store):
        """Claim this group's documented parameters out of `store`.

        Absent parameters leave the field None. A parameter of the wrong
        type or shape aborts the whole view.
        """
        values = {}
        for f in fields(cls):
            name = f.metadata["param"]
            parameter = store.remove(cls.GROUP, name)
            if parameter is None:
                values[f.name] = None
                continue
            try:
                values[f.name] = _project(parameter, f.metadata["kind"], f.metadata["shape"])
            except ParameterError as e:
                raise e.located(cls.GROUP, name) from None
        return cls(**values)

    def _group_id(self, group_ids) -> int:
        if hasattr(group_ids, "group_id_of"):
            gid = group_ids.group_id_of(self.GROUP)
        else:
            gid = group_ids.get(self.GROUP)
        if gid is None:
            raise UnknownGroupReference("group was never created", group=self.GROUP)
        return gid

    def write(self, codec: NumericCodec, group_ids: Mapping[str, int]) -> bytes:
        """One record per present field, in declared field order."""
        out = bytearray()
        gid = None
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if gid is None:
                gid = self._group_id(group_ids)
            try:
                parameter = _BUILDERS[f.metadata["kind"]](value)
            except ParameterError as e:
                raise e.located(self.GROUP, f.metadata["param"]) from None
            except ValueError as e:
                raise ValueError(f"{self.GROUP}:{f.metadata['param']}: {e}") from None
            out += parameter.write(codec, f.metadata["param"], gid, False)
        return bytes(out)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(values_equal(getattr(self, f.name), getattr(other, f.name)) for f in fields(self))

    __hash__ = None

    def __str__(self) -> str:
        lines = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, np.ndarray):
                value = value.tolist()
            lines.append(f"{_label(f)}: {value}\n")
        return "".join(lines)
