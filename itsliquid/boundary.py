"""
boundary.py — Wall Conditions & Mass Bookkeeping
=================================================
The box has solid walls on all four sides. Two policies:

  - Velocity  : no-slip, every border cell is forced to (0, 0).
  - Dye, pressure : Neumann / zero-gradient, every border cell copies its
                    nearest interior neighbour (rows first, then columns, so
                    corners end up with the diagonal interior value).

All fields are (height, width) float32 arrays, so row 0 is the top wall
(y = 0) and column 0 is the left wall (x = 0).

The second half of this file keeps the dye honest: a few Jacobi sweeps
and bilinear resampling both leak a little mass, so after each of those
stages the channel is rescaled back to the total it had before.
"""

import numpy as np

# Below this total a channel is treated as empty and never rescaled
MASS_EPSILON = 1e-10


def set_velocity_boundary(field: np.ndarray):
    """No-slip walls: zero every border cell in place."""
    field[0, :] = 0.0
    field[-1, :] = 0.0
    field[:, 0] = 0.0
    field[:, -1] = 0.0


def set_neumann_boundary(field: np.ndarray):
    """Zero-gradient walls: copy the nearest interior row/column outward."""
    field[0, :] = field[1, :]
    field[-1, :] = field[-2, :]
    field[:, 0] = field[:, 1]
    field[:, -1] = field[:, -2]


def channel_mass(field: np.ndarray) -> float:
    """Total amount of a scalar field, accumulated in double precision."""
    return float(field.sum(dtype=np.float64))


def restore_mass(field: np.ndarray, target: float) -> float:
    """
    Rescale `field` in place so that its total equals `target`.

    Skipped when the current total is negligible (nothing to scale, and the
    ratio would blow up). Returns the scale factor that was applied.
    """
    current = channel_mass(field)
    if current <= MASS_EPSILON:
        return 1.0
    scale = target / current
    field *= np.float32(scale)
    return scale
