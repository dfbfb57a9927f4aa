"""
forces.py — Extra Flow Sculpting (Attractors, Dye Eraser)
==========================================================
FluidGrid.add_force is the only momentum input the solver itself knows
about. The interactive tools need two more effects, applied directly to
the grid buffers before a step:

  - Attractor : a smoothed point sink pulling fluid toward a centre

        v += -strength / (2π (r² + s²)) * (dx, dy)

    with a dead zone around the centre (no singular kick) and a sponge
    ring at the rim that damps velocity so the sink doesn't end in a
    hard edge.

  - Eraser    : subtracts dye from a small disk, never below zero.
"""

import math

import numpy as np

from .grid import FluidGrid

# ── Attractor shape ───────────────────────────────────────────────────────────
ATTRACTOR_SMOOTHING = 2.0   # s: softens the 1/r singularity
DEAD_ZONE_FRACTION  = 0.2   # no pull inside 20% of the radius
SPONGE_FRACTION     = 0.8   # damping starts at 80% of the radius
SPONGE_STRENGTH     = 0.2   # velocity loses up to 20% at the rim

# ── Eraser shape ──────────────────────────────────────────────────────────────
ERASER_RADIUS = 2
ERASER_SCALE  = 0.3


def apply_attractor(grid: FluidGrid, cx: float, cy: float,
                    strength: float, radius: float):
    """
    Pull velocity toward (cx, cy) inside `radius`.

    Positive strength attracts, negative strength repels.

    Modifies: grid.vx, grid.vy (in-place)
    """
    if radius <= 0:
        return

    ys, xs = np.mgrid[0:grid.height, 0:grid.width]
    dx = xs - cx
    dy = ys - cy
    r_sq = dx * dx + dy * dy
    r = np.sqrt(r_sq)

    dead_zone = radius * DEAD_ZONE_FRACTION
    active = (r > dead_zone) & (r < radius)

    factor = -strength / (2.0 * math.pi * (r_sq + ATTRACTOR_SMOOTHING ** 2))
    factor = np.where(active, factor, 0.0)

    inner = radius * SPONGE_FRACTION
    sponge = active & (r > inner)
    damping = np.where(
        sponge,
        1.0 - SPONGE_STRENGTH * ((r - inner) / (radius - inner)) ** 2,
        1.0,
    )

    grid.vx += (factor * dx).astype(np.float32)
    grid.vy += (factor * dy).astype(np.float32)
    grid.vx *= damping.astype(np.float32)
    grid.vy *= damping.astype(np.float32)


def erase_dye(grid: FluidGrid, x: int, y: int, intensity: float):
    """
    Remove dye from all three channels in a small disk around (x, y).

    Removal is intensity * 0.3 at the centre, falling off to zero at the
    rim (1 - d²/4). Channels are clamped at zero.

    Modifies: grid.r, grid.g, grid.b (in-place)
    """
    if not grid.in_bounds(x, y):
        return

    reach = ERASER_RADIUS
    x0, x1 = max(0, x - reach), min(grid.width, x + reach + 1)
    y0, y1 = max(0, y - reach), min(grid.height, y + reach + 1)

    ys, xs = np.ogrid[y0:y1, x0:x1]
    dist_sq = (xs - x) ** 2 + (ys - y) ** 2
    r_sq = float(reach * reach)
    falloff = np.where(dist_sq <= r_sq, 1.0 - dist_sq / r_sq, 0.0)
    removal = (falloff * intensity * ERASER_SCALE).astype(np.float32)

    for field, _ in grid.dye_pairs():
        region = field[y0:y1, x0:x1]
        np.maximum(region - removal, 0.0, out=region)
