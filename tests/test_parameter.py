import struct

import numpy as np
import pytest

from c3d_core.codec import NumericCodec, Processor
from c3d_params.errors import DimensionMismatch, UnexpectedType
from c3d_params.parameter import Parameter, ParameterType
from c3d_params.records import iter_records

INTEL = NumericCodec(Processor.INTEL)


def decode_one(raw: bytes, codec=INTEL) -> Parameter:
    (record,) = list(iter_records(raw, codec))
    return Parameter.from_record(record, codec)


def test_float_record_layout():
    raw = Parameter.float(14.0).write(INTEL, "MARKER_DIAMETER", 1)
    expected = (
        bytes([15, 1])
        + b"MARKER_DIAMETER"
        + struct.pack("<h", 9)  # offset, type, ndims, 4 data bytes, desc len
        + bytes([4, 0])
        + struct.pack("<f", 14.0)
        + b"\x00"
    )
    assert raw == expected


def test_locked_flag_negates_name_length():
    raw = Parameter.integer(7).write(INTEL, "USED", 3, locked=True)
    assert struct.unpack("<b", raw[:1])[0] == -4
    assert raw[1] == 3
    assert decode_one(raw).locked is True


def test_grid_dimensions_are_file_order():
    grid = np.arange(6, dtype=np.float32).reshape(3, 2)
    p = Parameter.float_grid(grid)
    assert p.dimensions == (2, 3)
    raw = p.write(INTEL, "DATA_LIMITS", 2)
    # type, ndims, extents
    body = raw[2 + len("DATA_LIMITS") + 2:]
    assert body[:4] == bytes([4, 2, 2, 3])
    assert np.frombuffer(body[4:28], dtype="<f4").tolist() == [0, 1, 2, 3, 4, 5]
    back = decode_one(raw).as_float_grid((3, 2))
    assert back.tolist() == grid.tolist()


def test_text_parameters():
    p = Parameter.string("ACME")
    assert p.ptype is ParameterType.CHAR
    assert p.dimensions == (4,)
    raw = p.write(INTEL, "COMPANY", 1)
    assert raw[2 + 7 + 2] == 0xFF  # type tag -1
    assert decode_one(raw).as_string() == "ACME"

    labels = Parameter.strings(["A", "BCD"])
    assert labels.dimensions == (3, 2)
    assert labels.data == b"A  BCD"
    assert decode_one(labels.write(INTEL, "LABELS", 1)).as_strings() == ["A", "BCD"]


def test_description_round_trip():
    p = Parameter.byte_grid(np.array([1, -2, 3], dtype=np.int8))
    p.description = "three bytes"
    back = decode_one(p.write(INTEL, "FLAGS", 5))
    assert back == p
    assert back.description == "three bytes"
    assert back.as_byte_grid((None,)).tolist() == [1, -2, 3]


@pytest.mark.parametrize("processor", [Processor.INTEL, Processor.DEC, Processor.MIPS])
def test_numeric_round_trip(processor):
    codec = NumericCodec(processor)
    p = Parameter.integer_grid(np.array([[1, -1], [300, -300]], dtype=np.int16))
    assert decode_one(p.write(codec, "WORDS", 1), codec) == p
    f = Parameter.float(-0.7)
    assert decode_one(f.write(codec, "F", 1), codec) == f


def test_projection_errors():
    with pytest.raises(UnexpectedType, match="expected FLOAT, found INTEGER"):
        Parameter.integer(1).as_float()
    with pytest.raises(DimensionMismatch):
        Parameter.float_grid([1.0, 2.0]).as_float()
    with pytest.raises(DimensionMismatch):
        Parameter.float_grid(np.zeros((2, 2))).as_float_grid((3, 2))
    with pytest.raises(DimensionMismatch):
        Parameter(ParameterType.FLOAT, (3, 2), [1.0, 2.0, 3.0, 4.0])


def test_single_element_grid_is_a_scalar():
    assert Parameter.float_grid([2.5]).as_float() == 2.5


def test_write_limits():
    with pytest.raises(ValueError):
        Parameter.float(1.0).write(INTEL, "", 1)
    with pytest.raises(ValueError):
        Parameter.float(1.0).write(INTEL, "X" * 128, 1)
    with pytest.raises(ValueError):
        Parameter.float_grid(np.zeros((1,) * 8)).write(INTEL, "DEEP", 1)
    with pytest.raises(ValueError):
        Parameter.integer_grid(np.zeros(256)).write(INTEL, "WIDE", 1)


def test_non_latin1_text_is_a_value_error():
    with pytest.raises(ValueError, match="not latin-1"):
        Parameter.string("€5")
    with pytest.raises(ValueError, match="not latin-1"):
        Parameter.strings(["ok", "€"])
    p = Parameter.integer(1)
    p.description = "price in €"
    with pytest.raises(ValueError, match="^PRICE: Description"):
        p.write(INTEL, "PRICE", 1)


def test_one_column_text_matrix_is_a_string():
    p = Parameter(ParameterType.CHAR, (4, 1), b"ACME")
    assert p.as_string() == "ACME"
    assert p.as_strings() == ["ACME"]
    with pytest.raises(DimensionMismatch):
        Parameter(ParameterType.CHAR, (2, 2), b"ABCD").as_string()
    with pytest.raises(DimensionMismatch):
        Parameter(ParameterType.CHAR, (4, 1, 1), b"ACME").as_string()
