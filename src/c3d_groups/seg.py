"""SEG group: marker reconstruction settings.

Found mostly in older files; records how the raw camera data was turned
into 3D marker trajectories. Optional, but useful when chasing down
collection or processing problems.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from c3d_core.protocol import GROUP_SEG

from .base import GroupView, Kind, param


@dataclass(eq=False)
class Seg(GroupView):
    GROUP = GROUP_SEG

    # Marker diameter in mm; normally one value for the whole collection.
    marker_diameter: float | None = param("MARKER_DIAMETER", Kind.FLOAT)
    # Rows x, y, z; columns minimum, maximum.
    data_limits: np.ndarray | None = param("DATA_LIMITS", Kind.FLOAT_GRID, shape=(3, 2))
    # Acceleration factor for starting a new segment (gait: ~50 mm/s^2).
    acc_factor: float | None = param("ACC_FACTOR", Kind.FLOAT)
    # Noise factor for starting a new segment (gait: ~10 mm).
    noise_factor: float | None = param("NOISE_FACTOR", Kind.FLOAT)
    # Residual factor for accepting rays into a marker (gait: 2.0-3.0).
    residual_error_factor: float | None = param("RESIDUAL_ERROR_FACTOR", Kind.FLOAT)
    # Ray intersection limit (gait: 0.7 mm or less).
    intersection_limit: float | None = param("INTERSECTION_LIMIT", Kind.FLOAT)
