"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes the fluid look like it's *actually flowing*.

The algorithm (per interior cell):
  1. Take the cell position (x, y).
  2. Trace BACKWARD along the velocity by one timestep:
       src = (x, y) - dt * v(x, y)
     → "Where did the stuff in this cell come FROM?"
  3. Clamp src to [0.5, dim - 1.5] so the 2×2 stencil never leaves the box.
  4. Bilinearly sample the source field there; that is the new value.

Unconditionally stable: every new value is a convex blend of old values,
so nothing can grow beyond what was already in the field.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

from typing import TYPE_CHECKING

import numpy as np

from .boundary import channel_mass, restore_mass, set_neumann_boundary, set_velocity_boundary

if TYPE_CHECKING:
    from .grid import FluidGrid


def _bilinear_sample(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of a 2D field (H, W) at fractional positions.

    Positions are clamped to [0.5, W-1.5] × [0.5, H-1.5] first, so the
    upper corner (x0+1, y0+1) is always a valid index.

    Weights: s1 = x - floor(x), t1 = y - floor(y)
      value = (1-s1)(1-t1)·f00 + s1(1-t1)·f01 + (1-s1)t1·f10 + s1·t1·f11
    with f00 at (x0, y0), f01 at (x0+1, y0), f10 at (x0, y0+1).
    """
    H, W = field.shape

    x = np.clip(x, 0.5, W - 1.5)
    y = np.clip(y, 0.5, H - 1.5)

    fx = np.floor(x)
    fy = np.floor(y)
    x0 = fx.astype(np.intp)
    y0 = fy.astype(np.intp)
    x1 = x0 + 1
    y1 = y0 + 1

    # Keep the weights in the field's precision
    s1 = x - fx
    t1 = y - fy
    s0 = 1.0 - s1
    t0 = 1.0 - t1

    return (
        s0 * t0 * field[y0, x0] +
        s1 * t0 * field[y0, x1] +
        s0 * t1 * field[y1, x0] +
        s1 * t1 * field[y1, x1]
    )


def _backtrace(grid: "FluidGrid", vel_x: np.ndarray, vel_y: np.ndarray) -> tuple:
    """Source positions for every interior cell, traced dt back along (vel_x, vel_y)."""
    xs, ys = grid.interior_coords()
    src_x = xs - grid.dt * vel_x[1:-1, 1:-1]
    src_y = ys - grid.dt * vel_y[1:-1, 1:-1]
    return src_x, src_y


def advect_velocity(grid: "FluidGrid"):
    """
    Self-advection of the velocity field.

    Both the backtrace and the sampled values come from the start-of-step
    snapshot (vx_prev, vy_prev), i.e. the field before this step's
    diffusion and projection.

    Modifies: grid.vx, grid.vy (in-place)
    """
    src_x, src_y = _backtrace(grid, grid.vx_prev, grid.vy_prev)

    grid.vx[1:-1, 1:-1] = _bilinear_sample(grid.vx_prev, src_x, src_y)
    grid.vy[1:-1, 1:-1] = _bilinear_sample(grid.vy_prev, src_x, src_y)

    set_velocity_boundary(grid.vx)
    set_velocity_boundary(grid.vy)


def advect_dye(grid: "FluidGrid") -> tuple:
    """
    Carry the three dye channels along the current (projected) velocity.

    Values are sampled from the *_prev dye buffers. Afterwards every channel
    is rescaled so its total equals the *_prev total, which removes the mass
    that clamping and interpolation lose or gain.

    Returns the per-channel rescale factors.

    Modifies: grid.r, grid.g, grid.b (in-place)
    """
    src_x, src_y = _backtrace(grid, grid.vx, grid.vy)

    scales = []
    for field, field_prev in grid.dye_pairs():
        mass_before = channel_mass(field_prev)
        field[1:-1, 1:-1] = _bilinear_sample(field_prev, src_x, src_y)
        set_neumann_boundary(field)
        scales.append(restore_mass(field, mass_before))
    return tuple(scales)
