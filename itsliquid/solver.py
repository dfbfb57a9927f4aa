"""
solver.py — Pressure Projection
================================
The pressure projection step enforces INCOMPRESSIBILITY:
  div(v) = 0 everywhere

Diffusion and advection leave the velocity field with some divergence
(fluid "piles up" in some cells and drains from others). We fix this by:
  1. Computing the divergence of the current velocity field
  2. Solving the Poisson equation for pressure: ∇²p = div(v)
  3. Subtracting the pressure gradient from velocity: v = v - ∇p

This is the Helmholtz-Hodge decomposition: any vector field splits into
a divergence-free part plus a curl-free (gradient) part. We keep the
divergence-free part.

The pressure solve is Jacobi with a hard iteration cap. Once a minimum
number of iterations has run, it stops early if no cell moved by more
than the configured tolerance during the last iteration.
"""

import time
from typing import TYPE_CHECKING

import numpy as np

from .boundary import set_neumann_boundary, set_velocity_boundary

if TYPE_CHECKING:
    from .grid import FluidGrid


def project(grid: "FluidGrid") -> dict:
    """
    Pressure projection: make the velocity field (close to) divergence-free.

    Uses grid.divergence and grid.pressure as scratch; both are rebuilt
    from scratch on every call.

    Args:
        grid : The FluidGrid to modify in-place

    Returns:
        dict with timing, iteration and divergence metrics (for benchmarking)
    """
    t_start = time.perf_counter()

    div_before = np.abs(grid.compute_divergence()[1:-1, 1:-1])

    iterations, max_change = _project_jacobi(grid)

    _subtract_pressure_gradient(grid)

    set_velocity_boundary(grid.vx)
    set_velocity_boundary(grid.vy)

    t_end = time.perf_counter()

    div_after = np.abs(grid.compute_divergence()[1:-1, 1:-1])

    return {
        "time_ms"               : (t_end - t_start) * 1000,
        "iterations"            : iterations,
        "max_change"            : max_change,
        "divergence_before_max" : float(div_before.max()),
        "divergence_before_mean": float(div_before.mean()),
        "divergence_after_max"  : float(div_after.max()),
        "divergence_after_mean" : float(div_after.mean()),
    }


def _project_jacobi(grid: "FluidGrid") -> tuple:
    """
    Jacobi pressure solve.

      divergence[y, x] = -0.5 * h * ((vx[E] - vx[W]) + (vy[N] - vy[S]))
      p[y, x]          = (divergence[y, x] + sum_of_4_neighbours) / 4

    with h = 1 / width. Pressure walls are Neumann (dp/dn = 0), re-applied
    after every iteration.

    Returns: (iterations actually run, max per-cell change of the last one)
    """
    cfg = grid.config
    h = 1.0 / grid.width
    vx, vy = grid.vx, grid.vy
    div, p = grid.divergence, grid.pressure

    div[1:-1, 1:-1] = -0.5 * h * (
        (vx[1:-1, 2:] - vx[1:-1, :-2]) +
        (vy[2:, 1:-1] - vy[:-2, 1:-1])
    )
    p[:] = 0.0
    set_neumann_boundary(p)

    iterations = 0
    max_change = 0.0
    for it in range(cfg.pressure_iterations):
        neighbors = (
            p[1:-1, :-2] +
            p[1:-1, 2:] +
            p[:-2, 1:-1] +
            p[2:, 1:-1]
        )
        updated = (div[1:-1, 1:-1] + neighbors) / 4.0
        max_change = float(np.abs(updated - p[1:-1, 1:-1]).max())

        p[1:-1, 1:-1] = updated
        set_neumann_boundary(p)
        iterations += 1

        # `it` is zero-based: the default of 5 runs at least 7 iterations
        if it > cfg.pressure_min_iterations and max_change < cfg.pressure_tolerance:
            break

    return iterations, max_change


def _subtract_pressure_gradient(grid: "FluidGrid"):
    """
    Subtract ∇p from velocity, central differences at cell centres:

      vx -= 0.5 * (p[E] - p[W]) / h
      vy -= 0.5 * (p[N] - p[S]) / h

    This is what actually "fixes" the velocity field; the Jacobi solve
    above only finds the pressure.
    """
    h = 1.0 / grid.width
    p = grid.pressure

    grid.vx[1:-1, 1:-1] -= 0.5 * (p[1:-1, 2:] - p[1:-1, :-2]) / h
    grid.vy[1:-1, 1:-1] -= 0.5 * (p[2:, 1:-1] - p[:-2, 1:-1]) / h
