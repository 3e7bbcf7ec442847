from __future__ import annotations

from typing import Iterable

from c3d_core.codec import NumericCodec
from c3d_core.protocol import DEFAULT_FIRST_BLOCK, SECTION_KEY

from .store import ParameterStore


def encode_section_header(codec: NumericCodec, block_count: int, first_block: int = DEFAULT_FIRST_BLOCK) -> bytes:
    return bytes((first_block, SECTION_KEY, block_count, int(codec.processor)))


def encode_section(codec: NumericCodec, store: ParameterStore, views: Iterable = ()) -> bytes:
    """Concatenate group headers, typed view records and passthrough records.

    Views are written against `store` for group id resolution; the store
    only contributes parameters no view claimed.
    """
    out = bytearray(store.write_groups(codec))
    for view in views:
        out += view.write(codec, store)
    out += store.write_remaining(codec)
    return bytes(out)


def decode_section(payload: bytes, codec: NumericCodec, view_types: Iterable = ()) -> tuple[ParameterStore, list]:
    """Decode records into a store and build each requested view from it."""
    store = ParameterStore.from_bytes(payload, codec)
    views = [view_type.from_store(store) for view_type in view_types]
    return store, views
