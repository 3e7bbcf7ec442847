"""Decode a parameter section, rebuild it, and confirm it round-trips."""
import sys
from pathlib import Path

from c3d_core.codec import NumericCodec
from c3d_groups.manufacturer import Manufacturer
from c3d_groups.seg import Seg
from c3d_groups.trial import Trial
from c3d_params.records import split_section
from c3d_params.section import decode_section, encode_section

VIEW_TYPES = [Seg, Trial, Manufacturer]


def check_section(path: Path) -> dict:
    header, payload = split_section(Path(path).read_bytes())
    codec = NumericCodec.from_processor_byte(header.processor)

    store, views = decode_section(payload, codec, VIEW_TYPES)
    passthrough = store.to_frame()
    rebuilt = encode_section(codec, store, views)

    store2, views2 = decode_section(rebuilt, codec, VIEW_TYPES)
    for before, after in zip(views, views2):
        if before != after:
            raise ValueError(f"View {type(before).__name__} changed across round trip")
    if store.write_remaining(codec) != store2.write_remaining(codec):
        raise ValueError("Passthrough parameters changed across round trip")

    return {
        "processor": codec.processor.name,
        "groups": len(store.groups()),
        "views": [type(v).__name__ for v in views if not v.is_empty()],
        "passthrough": len(passthrough),
    }


def main() -> None:
    if len(sys.argv) != 2:
        print("Usage: python tools/check_section.py <section_file>")
        raise SystemExit(2)
    try:
        result = check_section(Path(sys.argv[1]))
    except Exception as e:
        # Fail closed, with a single-line reason.
        print(f"FATAL: {e}")
        raise SystemExit(1)
    print(f"PASS: {result}")


if __name__ == "__main__":
    main()
