from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from c3d_core.protocol import GROUP_TRIAL

from .base import GroupView, Kind, param


def split_frame(frame: int) -> np.ndarray:
    """Split a frame number into the [low, high] 16-bit words stored on disk."""
    if not 0 <= frame <= 0xFFFFFFFF:
        raise ValueError(f"Frame {frame} does not fit in two 16-bit words")
    low, high = frame & 0xFFFF, frame >> 16
    # Words are stored as int16; reinterpret the unsigned halves.
    return np.array([low, high], dtype=np.uint16).view(np.int16)


def join_frame(words) -> int:
    low, high = np.asarray(words, dtype=np.int16).view(np.uint16).tolist()
    return low + (high << 16)


@dataclass(eq=False)
class Trial(GroupView):
    """TRIAL group: frame range actually captured and the camera rate.

    Frame numbers above 65535 do not fit the header's 16-bit fields, so
    writers also store them here as two 16-bit words.
    """

    GROUP = GROUP_TRIAL

    actual_start_field: np.ndarray | None = param("ACTUAL_START_FIELD", Kind.INTEGER_GRID, shape=(2,))
    actual_end_field: np.ndarray | None = param("ACTUAL_END_FIELD", Kind.INTEGER_GRID, shape=(2,))
    camera_rate: float | None = param("CAMERA_RATE", Kind.FLOAT)

    @property
    def start_frame(self) -> int | None:
        return None if self.actual_start_field is None else join_frame(self.actual_start_field)

    @property
    def end_frame(self) -> int | None:
        return None if self.actual_end_field is None else join_frame(self.actual_end_field)

    @classmethod
    def from_frames(cls, start: int, end: int, camera_rate: float | None = None) -> "Trial":
        return cls(split_frame(start), split_frame(end), camera_rate)
