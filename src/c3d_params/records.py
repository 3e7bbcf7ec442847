from __future__ import annotations

import struct
from typing import Iterator, NamedTuple
from warnings import warn

from c3d_core.codec import NumericCodec
from c3d_core.protocol import (
    MAX_DESCRIPTION_LEN,
    MAX_GROUP_ID,
    MAX_NAME_LEN,
    OFFSET_LEN,
    RECORD_PREFIX_LEN,
    SECTION_HEADER_LEN,
)

from .errors import MalformedRecord

RECORD_PREFIX_FMT = "<bb"
MAX_OFFSET = 0x7FFF


class RawRecord(NamedTuple):
    """One group or parameter record sliced out of the section payload.

    `body` covers everything after the offset field up to the next record.
    For the `last` record (offset 0) it runs to the end of the payload.
    """

    name: str
    group_id: int
    locked: bool
    body: bytes
    position: int
    last: bool = False

    @property
    def is_group(self) -> bool:
        return self.group_id < 0


class SectionHeader(NamedTuple):
    first_block: int
    key: int
    block_count: int
    processor: int


def split_section(block: bytes) -> tuple[SectionHeader, bytes]:
    """Separate the 4-byte section header from the record payload."""
    if len(block) < SECTION_HEADER_LEN:
        raise MalformedRecord(f"section of {len(block)} bytes has no header")
    return SectionHeader(*block[:SECTION_HEADER_LEN]), block[SECTION_HEADER_LEN:]


def iter_records(payload: bytes, codec: NumericCodec) -> Iterator[RawRecord]:
    """Walk the record chain by its next-record offsets.

    Stops at the end of the buffer, at a zero name length or group id, or
    after a record whose offset is 0. Any offset or length that leaves the
    buffer raises MalformedRecord.
    """
    end = len(payload)
    pos = 0
    while pos < end:
        if end - pos < RECORD_PREFIX_LEN:
            warn(f"Ignoring {end - pos} trailing byte(s) at offset {pos}")
            return

        name_len, group_id = struct.unpack_from(RECORD_PREFIX_FMT, payload, pos)
        if name_len == 0 or group_id == 0:
            return

        name_start = pos + RECORD_PREFIX_LEN
        name_end = name_start + abs(name_len)
        if name_end + OFFSET_LEN > end:
            raise MalformedRecord(
                f"name length {abs(name_len)} at offset {pos} runs past section end {end}"
            )
        try:
            name = payload[name_start:name_end].decode("ascii")
        except UnicodeDecodeError:
            raise MalformedRecord(f"non-ASCII name at offset {pos}") from None

        offset = codec.decode_i16(payload[name_end:name_end + OFFSET_LEN])
        body_start = name_end + OFFSET_LEN
        if offset == 0:
            next_pos = end
        elif offset < OFFSET_LEN:
            raise MalformedRecord(f"next-record offset {offset} at offset {pos}", parameter=name)
        else:
            next_pos = name_end + offset
            if next_pos > end:
                raise MalformedRecord(
                    f"next-record offset {offset} at offset {pos} points past section end {end}",
                    parameter=name,
                )

        yield RawRecord(name, group_id, name_len < 0, payload[body_start:next_pos], pos, offset == 0)

        if offset == 0:
            return
        pos = next_pos


def encode_record(codec: NumericCodec, name: str, group_id: int, locked: bool, body: bytes) -> bytes:
    """Frame a record body with its name, id byte and next-record offset.

    `group_id` is written as given: negative for a group header, positive
    for a parameter belonging to that group.
    """
    name_bytes = encode_name(name)
    if not 1 <= abs(group_id) <= MAX_GROUP_ID:
        raise ValueError(f"Group id {group_id} outside 1..{MAX_GROUP_ID}")
    offset = OFFSET_LEN + len(body)
    if offset > MAX_OFFSET:
        raise ValueError(f"Record {name!r} is {offset} bytes, too large for an int16 offset")
    name_len = -len(name_bytes) if locked else len(name_bytes)
    return (
        struct.pack(RECORD_PREFIX_FMT, name_len, group_id)
        + name_bytes
        + codec.encode_i16(offset)
        + body
    )


def encode_name(name: str) -> bytes:
    try:
        b = name.encode("ascii")
    except UnicodeEncodeError:
        raise ValueError(f"Name {name!r} is not ASCII") from None
    if not 1 <= len(b) <= MAX_NAME_LEN:
        raise ValueError(f"Name {name!r} must be 1..{MAX_NAME_LEN} characters")
    return b


def encode_description(description: str) -> bytes:
    try:
        b = description.encode("latin-1")
    except UnicodeEncodeError:
        raise ValueError(f"Description {description!r} is not latin-1 text") from None
    if len(b) > MAX_DESCRIPTION_LEN:
        raise ValueError(f"Description longer than {MAX_DESCRIPTION_LEN} bytes")
    return bytes((len(b),)) + b


def decode_description(body: bytes, pos: int) -> str:
    """Read the trailing length-prefixed description; absent means empty."""
    if pos >= len(body):
        return ""
    length = body[pos]
    if pos + 1 + length > len(body):
        raise MalformedRecord(f"description of {length} bytes runs past record end")
    return body[pos + 1:pos + 1 + length].decode("latin-1")
