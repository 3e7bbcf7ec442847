from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from c3d_core.protocol import GROUP_MANUFACTURER

from .base import GroupView, Kind, param


@dataclass(eq=False)
class Manufacturer(GroupView):
    """MANUFACTURER group: who wrote the file and with which software."""

    GROUP = GROUP_MANUFACTURER

    company: str | None = param("COMPANY", Kind.STRING)
    software: str | None = param("SOFTWARE", Kind.STRING)
    version_label: str | None = param("VERSION_LABEL", Kind.STRING)
    edition: str | None = param("EDITION", Kind.STRING)
    # Numeric version, e.g. [major, minor, build]
    version: np.ndarray | None = param("VERSION", Kind.INTEGER_GRID, shape=(None,))
