"""Write a demo C3D parameter section (header + records) to a file."""
from pathlib import Path

import numpy as np

from c3d_core.codec import NumericCodec, Processor
from c3d_core.protocol import BLOCK_SIZE, GROUP_MANUFACTURER, GROUP_SEG, GROUP_TRIAL
from c3d_groups.manufacturer import Manufacturer
from c3d_groups.seg import Seg
from c3d_groups.trial import Trial
from c3d_params.parameter import Parameter
from c3d_params.section import encode_section, encode_section_header
from c3d_params.store import ParameterStore


def build_store() -> tuple[ParameterStore, list]:
    store = ParameterStore()
    store.add_group(1, GROUP_SEG, "Marker reconstruction settings")
    store.add_group(2, GROUP_TRIAL, "Trial information")
    store.add_group(3, GROUP_MANUFACTURER, "File writer")
    store.add_group(4, "LAB", "Site specific settings", locked=True)

    custom = Parameter.float_grid(np.array([[0.5, 1.5], [2.5, 3.5]]))
    custom.description = "Force plate calibration offsets"
    store.add_parameter("LAB", "PLATE_OFFSETS", custom)
    store.add_parameter("LAB", "OPERATOR", Parameter.string("J. DOE"))
    # Unknown parameter inside a group that has a typed view.
    store.add_parameter(GROUP_SEG, "VENDOR_MODE", Parameter.integer(3))

    views = [
        Seg(
            marker_diameter=14.0,
            data_limits=[[-3000.0, 3000.0], [-3000.0, 3000.0], [-10.0, 2500.0]],
            acc_factor=50.0,
            noise_factor=10.0,
            residual_error_factor=2.0,
            intersection_limit=0.7,
        ),
        Trial.from_frames(1, 70000, camera_rate=100.0),
        Manufacturer(company="ACME", software="capture", version=[1, 4, 2]),
    ]
    return store, views


def write_sample(out: Path, processor: Processor = Processor.INTEL) -> Path:
    codec = NumericCodec(processor)
    store, views = build_store()
    records = encode_section(codec, store, views)
    blocks = -(-(len(records) + 4) // BLOCK_SIZE)
    data = encode_section_header(codec, blocks) + records
    data += b"\x00" * (blocks * BLOCK_SIZE - len(data))
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    print(f"GENERATED: {out} ({processor.name}, {len(records)} record bytes)")
    return out


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/make_sample_section.py OUT_FILE [--processor intel|dec|mips]

    args = [a for a in sys.argv[1:] if a]

    processor = Processor.INTEL
    if "--processor" in args:
        i = args.index("--processor")
        if i + 1 >= len(args):
            raise SystemExit("--processor requires a value")
        processor = Processor[args[i + 1].upper()]
        args = args[:i] + args[i + 2:]

    out = args[0] if args else "sample_parameters.bin"
    write_sample(Path(out), processor)
