import struct

import pytest

from c3d_core.codec import NumericCodec, Processor
from c3d_params.errors import MalformedRecord
from c3d_params.parameter import Parameter
from c3d_params.store import Group, ParameterStore

INTEL = NumericCodec(Processor.INTEL)


def section() -> bytes:
    # Parameter records may precede their group record.
    return (
        Parameter.string("ACME").write(INTEL, "Company", 2)
        + Group(1, "SEG", "segments").write(INTEL)
        + Group(2, "Manufacturer").write(INTEL)
        + Parameter.float(14.0).write(INTEL, "MARKER_DIAMETER", 1)
        + Parameter.integer(3).write(INTEL, "VENDOR_MODE", 1, locked=True)
    )


def test_decode_groups_and_parameters():
    store = ParameterStore.from_bytes(section(), INTEL)
    assert [g.name for g in store.groups()] == ["SEG", "Manufacturer"]
    assert store.group("seg").description == "segments"
    assert store.group_id_of("MANUFACTURER") == 2
    assert store.get("manufacturer", "COMPANY").as_string() == "ACME"
    assert store.get("SEG", "VENDOR_MODE").locked is True
    assert "vendor_mode" in store.group("SEG")
    assert len(store) == 3
    assert "SEG" in store and "POINT" not in store


def test_remove_is_permanent_and_case_insensitive():
    store = ParameterStore.from_bytes(section(), INTEL)
    p = store.remove("seg", "marker_diameter")
    assert p.as_float() == 14.0
    assert store.remove("SEG", "MARKER_DIAMETER") is None
    assert store.remove("POINT", "RATE") is None
    assert store.get("SEG", "MARKER_DIAMETER") is None
    assert len(store) == 2


def test_empty_group_still_resolves():
    store = ParameterStore.from_bytes(section(), INTEL)
    store.remove("SEG", "MARKER_DIAMETER")
    store.remove("SEG", "VENDOR_MODE")
    assert len(store.group("SEG")) == 0
    assert store.group_id_of("SEG") == 1
    assert store.group_id_of("POINT") is None


def test_remaining_preserves_names_and_order():
    store = ParameterStore.from_bytes(section(), INTEL)
    store.remove("SEG", "MARKER_DIAMETER")
    assert [(g.name, name) for g, name, _ in store.remaining()] == [
        ("SEG", "VENDOR_MODE"),
        ("Manufacturer", "Company"),
    ]


def test_passthrough_is_byte_identical():
    store = ParameterStore.from_bytes(section(), INTEL)
    out = store.write_remaining(INTEL)
    assert Parameter.integer(3).write(INTEL, "VENDOR_MODE", 1, locked=True) in out
    assert Parameter.string("ACME").write(INTEL, "Company", 2) in out

    again = ParameterStore.from_bytes(store.write_groups(INTEL) + out, INTEL)
    assert again.write_remaining(INTEL) == out


def test_undefined_group_is_malformed():
    raw = Parameter.float(1.0).write(INTEL, "RATE", 9)
    with pytest.raises(MalformedRecord, match="undefined group id 9"):
        ParameterStore.from_bytes(raw, INTEL)


def test_duplicate_group_id_is_malformed():
    raw = Group(1, "A").write(INTEL) + Group(1, "B").write(INTEL)
    with pytest.raises(MalformedRecord):
        ParameterStore.from_bytes(raw, INTEL)


def test_truncated_body_names_parameter():
    raw = Group(1, "SEG").write(INTEL) + Parameter.float(1.0).write(INTEL, "ACC_FACTOR", 1)
    raw = raw[:-3]
    with pytest.raises(MalformedRecord) as exc:
        ParameterStore.from_bytes(raw, INTEL)
    assert "ACC_FACTOR" in str(exc.value)


def test_duplicate_parameter_warns():
    store = ParameterStore()
    store.add_group(1, "SEG")
    store.add_parameter("SEG", "X", Parameter.float(1.0))
    with pytest.warns(UserWarning, match="Duplicate parameter"):
        store.add_parameter("SEG", "x", Parameter.float(2.0))
    assert store.get("SEG", "X").as_float() == 2.0


def test_to_frame():
    store = ParameterStore.from_bytes(section(), INTEL)
    df = store.to_frame()
    assert list(df.columns) == ["group", "group_id", "name", "type", "dimensions", "locked", "description"]
    assert df["name"].tolist() == ["MARKER_DIAMETER", "VENDOR_MODE", "Company"]
    assert df["type"].tolist() == ["FLOAT", "INTEGER", "CHAR"]
    store.remove("SEG", "MARKER_DIAMETER")
    store.remove("SEG", "VENDOR_MODE")
    store.remove("MANUFACTURER", "COMPANY")
    assert store.to_frame().empty


def foreign_record(name: bytes, group_id: int, body: bytes, offset=None) -> bytes:
    """Frame a record by hand, the way other writers lay them out."""
    if offset is None:
        offset = 2 + len(body)
    return struct.pack("<bb", len(name), group_id) + name + struct.pack("<h", offset) + body


# INTEGER scalar 7 with no description length byte
NO_DESCRIPTION = bytes([2, 0]) + struct.pack("<h", 7)
# same value, empty description, then three bytes of slack before the next record
SLACK = bytes([2, 0]) + struct.pack("<h", 7) + b"\x00" + b"\xaa\xbb\xcc"


@pytest.mark.parametrize("body", [NO_DESCRIPTION, SLACK])
def test_foreign_record_passes_through_verbatim(body):
    record = foreign_record(b"CUSTOM", 1, body)
    store = ParameterStore.from_bytes(Group(1, "SEG").write(INTEL) + record, INTEL)
    assert store.get("SEG", "CUSTOM").as_integer() == 7
    assert store.write_remaining(INTEL) == record


def test_dec_tiny_float_passes_through_verbatim():
    dec = NumericCodec(Processor.DEC)
    # DEC word 0x00800001: exponent 1, below IEEE single's normal range
    record = foreign_record(b"TINY", 1, bytes([4, 0, 0x80, 0x00, 0x01, 0x00, 0]))
    store = ParameterStore.from_bytes(Group(1, "SEG").write(dec) + record, dec)
    assert store.get("SEG", "TINY").as_float() == (2**23 + 1) * 2.0**-151
    assert store.write_remaining(dec) == record


def test_last_record_drops_block_padding():
    body = bytes([2, 0]) + struct.pack("<h", 7) + b"\x00"
    payload = Group(1, "SEG").write(INTEL) + foreign_record(b"CUSTOM", 1, body, offset=0) + bytes(20)
    store = ParameterStore.from_bytes(payload, INTEL)
    assert store.write_remaining(INTEL) == foreign_record(b"CUSTOM", 1, body)


def test_changed_foreign_record_is_reencoded():
    record = foreign_record(b"CUSTOM", 1, SLACK)
    store = ParameterStore.from_bytes(Group(1, "SEG").write(INTEL) + record, INTEL)
    p = store.get("SEG", "CUSTOM")
    p.description = "edited"
    expected = Parameter.integer(7)
    expected.description = "edited"
    assert store.write_remaining(INTEL) == expected.write(INTEL, "CUSTOM", 1)

    # a different processor cannot reuse the stored bytes either
    store = ParameterStore.from_bytes(Group(1, "SEG").write(INTEL) + record, INTEL)
    mips = NumericCodec(Processor.MIPS)
    assert store.write_remaining(mips) == Parameter.integer(7).write(mips, "CUSTOM", 1)


def test_non_latin1_group_description_names_group():
    with pytest.raises(ValueError, match="^SEG: Description"):
        Group(1, "SEG", "segments €").write(INTEL)
