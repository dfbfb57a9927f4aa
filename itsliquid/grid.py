"""
grid.py — Collocated 2D Fluid Grid
===================================
The foundation of the entire simulation.

Every quantity lives at CELL CENTERS on a width × height grid:
  - Velocity  vx, vy      (+ vx_prev, vy_prev snapshots)
  - Dye       r, g, b     (+ r_prev, g_prev, b_prev snapshots)
  - Scratch   pressure, divergence (rebuilt by every projection)

Buffers are (height, width) float32 arrays in C order, so the flat view
of any buffer is row-major with index y * width + x. The outer ring of
cells is the wall; the interior is [1, width-2] × [1, height-2].

All buffers are allocated once here and mutated in place for the whole
life of the grid. Changing resolution means building a new grid.
"""

import time
from typing import Optional, Tuple

import numpy as np

from .advect import advect_dye, advect_velocity
from .boundary import channel_mass, set_neumann_boundary, set_velocity_boundary
from .config import SimulationConfig
from .diffuse import diffuse_dye, diffuse_velocity
from .solver import project

# Smallest grid with a non-empty interior
MIN_GRID_SIZE = 3


def _readonly_flat(field: np.ndarray) -> np.ndarray:
    """Flat, non-writeable view sharing memory with `field`."""
    view = field.reshape(-1)
    view.flags.writeable = False
    return view


class FluidGrid:
    """
    Stable-fluids solver for a viscous fluid carrying RGB dye.
    This is the single source of truth for all simulation state.

    Usage:
        grid = FluidGrid(128, 128)
        grid.add_force(64, 64, (0.0, 20.0), radius=4.0)
        grid.add_dye(64, 64, (1.0, 0.2, 0.0))
        grid.step()
        red = grid.dye_r          # flat, read-only, index y * width + x
    """

    def __init__(self, width: int, height: int, config: Optional[SimulationConfig] = None):
        """
        Args:
            width, height : Grid size in cells, walls included (both ≥ 3)
            config        : Solver parameters (defaults to SimulationConfig())
        """
        if width < MIN_GRID_SIZE or height < MIN_GRID_SIZE:
            raise ValueError(
                f"Grid must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE}, got {width}x{height}"
            )

        self._width = int(width)
        self._height = int(height)
        self.config = config if config is not None else SimulationConfig()

        shape = (self._height, self._width)

        # ── Velocity ───────────────────────────────────────────────────────
        self.vx      = np.zeros(shape, dtype=np.float32)
        self.vy      = np.zeros(shape, dtype=np.float32)
        self.vx_prev = np.zeros(shape, dtype=np.float32)
        self.vy_prev = np.zeros(shape, dtype=np.float32)

        # ── Dye (HDR accumulator, not clamped to [0, 1]) ───────────────────
        self.r      = np.zeros(shape, dtype=np.float32)
        self.g      = np.zeros(shape, dtype=np.float32)
        self.b      = np.zeros(shape, dtype=np.float32)
        self.r_prev = np.zeros(shape, dtype=np.float32)
        self.g_prev = np.zeros(shape, dtype=np.float32)
        self.b_prev = np.zeros(shape, dtype=np.float32)

        # ── Projection scratch ─────────────────────────────────────────────
        self.pressure   = np.zeros(shape, dtype=np.float32)
        self.divergence = np.zeros(shape, dtype=np.float32)

        # Interior cell coordinates, reused by every backtrace
        self._xs, self._ys = np.meshgrid(
            np.arange(1, self._width - 1, dtype=np.float32),
            np.arange(1, self._height - 1, dtype=np.float32),
        )

    # ── Geometry ───────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def dt(self) -> float:
        return self.config.dt

    def index(self, x: int, y: int) -> int:
        """Flat row-major index of cell (x, y)."""
        return y * self._width + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def interior_coords(self) -> Tuple[np.ndarray, np.ndarray]:
        """(xs, ys) float32 coordinates of every interior cell, shape (H-2, W-2)."""
        return self._xs, self._ys

    def dye_pairs(self) -> tuple:
        """((r, r_prev), (g, g_prev), (b, b_prev))"""
        return (
            (self.r, self.r_prev),
            (self.g, self.g_prev),
            (self.b, self.b_prev),
        )

    # ── Read-only accessors for renderers / exporters / analysis ───────────

    @property
    def velocity_x(self) -> np.ndarray:
        return _readonly_flat(self.vx)

    @property
    def velocity_y(self) -> np.ndarray:
        return _readonly_flat(self.vy)

    @property
    def dye_r(self) -> np.ndarray:
        return _readonly_flat(self.r)

    @property
    def dye_g(self) -> np.ndarray:
        return _readonly_flat(self.g)

    @property
    def dye_b(self) -> np.ndarray:
        return _readonly_flat(self.b)

    # ── Injection ──────────────────────────────────────────────────────────

    def add_dye(self, x: int, y: int, color: Tuple[float, float, float]):
        """
        Add colour to a single cell. Out-of-range coordinates are ignored.

        Args:
            x, y  : Cell indices
            color : (dr, dg, db) amounts to add; may push a cell above 1.0
        """
        if not self.in_bounds(x, y):
            return
        dr, dg, db = color
        self.r[y, x] += dr
        self.g[y, x] += dg
        self.b[y, x] += db

    def add_force(self, x: int, y: int, force: Tuple[float, float], radius: float):
        """
        Inject velocity into a disk around (x, y).

        Every cell with dist² ≤ radius² gets force * (1 - dist²/radius²):
        full strength at the centre, zero at the rim. Cells off the grid are
        skipped; a centre off the grid or a non-positive radius does nothing.

        Args:
            x, y   : Centre cell
            force  : (fx, fy) velocity to add at the centre
            radius : Disk radius in cells
        """
        if not self.in_bounds(x, y) or radius <= 0:
            return

        reach = int(radius)
        x0, x1 = max(0, x - reach), min(self._width, x + reach + 1)
        y0, y1 = max(0, y - reach), min(self._height, y + reach + 1)

        ys, xs = np.ogrid[y0:y1, x0:x1]
        dist_sq = (xs - x) ** 2 + (ys - y) ** 2
        r_sq = radius * radius
        falloff = np.where(dist_sq <= r_sq, 1.0 - dist_sq / r_sq, 0.0)

        fx, fy = force
        self.vx[y0:y1, x0:x1] += (fx * falloff).astype(np.float32)
        self.vy[y0:y1, x0:x1] += (fy * falloff).astype(np.float32)

    # ── Boundaries ─────────────────────────────────────────────────────────

    def set_velocity_boundaries(self):
        set_velocity_boundary(self.vx)
        set_velocity_boundary(self.vy)

    def set_dye_boundaries(self):
        for field, _ in self.dye_pairs():
            set_neumann_boundary(field)

    def enforce_boundaries(self):
        """No-slip velocity walls, zero-gradient dye walls."""
        self.set_velocity_boundaries()
        self.set_dye_boundaries()

    # ── Stages ─────────────────────────────────────────────────────────────

    def snapshot(self):
        """Copy current velocity and dye into the *_prev buffers."""
        np.copyto(self.vx_prev, self.vx)
        np.copyto(self.vy_prev, self.vy)
        for field, field_prev in self.dye_pairs():
            np.copyto(field_prev, field)

    def project_velocity(self) -> dict:
        """Remove divergence from (vx, vy). Returns the solver metrics."""
        return project(self)

    def step(self) -> dict:
        """
        Advance the simulation by one timestep (dt).

        Stage order is fixed; each stage reads buffers the previous one filled:
          1. snapshot        4. advect velocity    7. advect dye
          2. diffuse velocity 5. project           8. boundaries
          3. project         6. diffuse dye

        Returns a per-stage timing / diagnostics dict.
        """
        t_total_start = time.perf_counter()

        self.snapshot()

        t0 = time.perf_counter()
        diffuse_velocity(self)
        t_diffuse_vel = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        proj1 = project(self)
        t_project1 = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        advect_velocity(self)
        t_advect_vel = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        proj2 = project(self)
        t_project2 = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        diffuse_scales = diffuse_dye(self)
        t_diffuse_dye = (time.perf_counter() - t0) * 1000

        # Dye is advected from its diffused state
        t0 = time.perf_counter()
        for field, field_prev in self.dye_pairs():
            np.copyto(field_prev, field)
        advect_scales = advect_dye(self)
        t_advect_dye = (time.perf_counter() - t0) * 1000

        self.enforce_boundaries()

        t_total = (time.perf_counter() - t_total_start) * 1000

        return {
            "total_ms"          : t_total,
            "diffuse_vel_ms"    : t_diffuse_vel,
            "project1_ms"       : t_project1,
            "advect_vel_ms"     : t_advect_vel,
            "project2_ms"       : t_project2,
            "diffuse_dye_ms"    : t_diffuse_dye,
            "advect_dye_ms"     : t_advect_dye,
            "pressure_iters"    : (proj1["iterations"], proj2["iterations"]),
            "divergence_max"    : proj2["divergence_after_max"],
            "divergence_mean"   : proj2["divergence_after_mean"],
            "diffuse_mass_scale": diffuse_scales,
            "advect_mass_scale" : advect_scales,
            "dye_total"         : self.total_dye(),
        }

    # ── Diagnostics ────────────────────────────────────────────────────────

    def compute_divergence(self) -> np.ndarray:
        """
        Divergence of the velocity field in grid units:
          div = 0.5 * ((vx[E] - vx[W]) + (vy[N] - vy[S]))

        For an incompressible fluid this should be ~0 everywhere.
        Border cells are 0. Returns a new (height, width) array.
        """
        div = np.zeros_like(self.vx)
        div[1:-1, 1:-1] = 0.5 * (
            (self.vx[1:-1, 2:] - self.vx[1:-1, :-2]) +
            (self.vy[2:, 1:-1] - self.vy[:-2, 1:-1])
        )
        return div

    def total_dye(self) -> Tuple[float, float, float]:
        return channel_mass(self.r), channel_mass(self.g), channel_mass(self.b)

    def save_state(self) -> dict:
        """Snapshot every public buffer as flat row-major copies."""
        return {
            "width"      : self._width,
            "height"     : self._height,
            "velocity_x" : self.vx.ravel().copy(),
            "velocity_y" : self.vy.ravel().copy(),
            "dye_r"      : self.r.ravel().copy(),
            "dye_g"      : self.g.ravel().copy(),
            "dye_b"      : self.b.ravel().copy(),
            "pressure"   : self.pressure.ravel().copy(),
        }

    def reset(self):
        """Zero out all fields in place."""
        for arr in [self.vx, self.vy, self.vx_prev, self.vy_prev,
                    self.r, self.g, self.b, self.r_prev, self.g_prev, self.b_prev,
                    self.pressure, self.divergence]:
            arr[:] = 0.0

    def __repr__(self):
        max_div = np.abs(self.compute_divergence()).max()
        max_vel = np.sqrt(self.vx ** 2 + self.vy ** 2).max()
        r, g, b = self.total_dye()
        return (
            f"FluidGrid({self._width}x{self._height}, dt={self.dt})\n"
            f"  dye      : r={r:.4f}, g={g:.4f}, b={b:.4f}\n"
            f"  velocity : max_magnitude={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f} (target: ~0)"
        )
