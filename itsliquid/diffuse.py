"""
diffuse.py — Implicit Diffusion via Jacobi Iteration
=====================================================
Diffusion makes quantities spread to their neighbours.
  - viscosity      → how fast velocity smooths out (thick vs thin fluid)
  - dye_diffusion  → how fast colour bleeds into neighbouring cells

The math: solve the implicit heat equation

  (I - a·∇²) x_new = x_old        with a = dt * rate

Implicit diffusion is unconditionally stable, so a large dt cannot blow
the simulation up. We don't solve it exactly: a small, FIXED number of
Jacobi sweeps is enough for a visual solver (4 for velocity, 2 for dye).

Each sweep is pure Jacobi: the neighbour sum is built from the previous
iterate before the interior is overwritten, so the result does not
depend on cell visiting order.

Because the sweep count is finite, dye diffusion drifts in total mass.
That drift is removed afterwards by rescaling each channel back to the
total it had before the block (see boundary.restore_mass).
"""

from typing import TYPE_CHECKING, Callable

import numpy as np

from .boundary import channel_mass, restore_mass, set_neumann_boundary, set_velocity_boundary

if TYPE_CHECKING:
    from .grid import FluidGrid


def _jacobi_solve(
    field: np.ndarray,
    field_prev: np.ndarray,
    alpha: float,
    iterations: int,
    set_boundary: Callable[[np.ndarray], None],
):
    """
    Jacobi iteration for: (I - alpha * Laplacian) * x = b, in place.

      x_new[y, x] = (b[y, x] + alpha * sum_of_4_neighbours) / (1 + 4 * alpha)

    Args:
        field        : Current iterate, refined in place, shape (H, W)
        field_prev   : Right-hand side b, same shape
        alpha        : Diffusion coefficient for this timestep
        iterations   : Number of sweeps (fixed, no convergence check)
        set_boundary : Wall policy re-applied after every sweep so the next
                       sweep reads correct border values
    """
    beta = 1.0 + 4.0 * alpha

    for _ in range(iterations):
        neighbors = (
            field[1:-1, :-2] +   # x-1
            field[1:-1, 2:] +    # x+1
            field[:-2, 1:-1] +   # y-1
            field[2:, 1:-1]      # y+1
        )
        field[1:-1, 1:-1] = (field_prev[1:-1, 1:-1] + alpha * neighbors) / beta
        set_boundary(field)


def diffuse_velocity(grid: "FluidGrid"):
    """
    Viscous diffusion of both velocity components.

    Sources are the start-of-step snapshots vx_prev / vy_prev.
    Walls are no-slip, so the velocity boundary is re-applied every sweep.

    Modifies: grid.vx, grid.vy (in-place)
    """
    alpha = grid.dt * grid.config.viscosity
    iterations = grid.config.velocity_diffuse_iterations

    _jacobi_solve(grid.vx, grid.vx_prev, alpha, iterations, set_velocity_boundary)
    _jacobi_solve(grid.vy, grid.vy_prev, alpha, iterations, set_velocity_boundary)


def diffuse_dye(grid: "FluidGrid") -> tuple:
    """
    Diffuse the three dye channels independently, then restore each
    channel's total mass to what it was before diffusion.

    Returns the per-channel rescale factors (1.0 means no correction).

    Modifies: grid.r, grid.g, grid.b (in-place)
    """
    alpha = grid.dt * grid.config.dye_diffusion
    iterations = grid.config.dye_diffuse_iterations

    scales = []
    for field, field_prev in grid.dye_pairs():
        mass_before = channel_mass(field)
        _jacobi_solve(field, field_prev, alpha, iterations, set_neumann_boundary)
        scales.append(restore_mass(field, mass_before))
    return tuple(scales)
