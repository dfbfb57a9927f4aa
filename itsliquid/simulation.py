"""
simulation.py — Frame Loop with Persistent Emitters
====================================================
FluidGrid is the solver. This wraps it with what an interactive app or
a headless run needs around it:

  - persistent emitters (dye sources, force sources, attractors) that are
    re-applied every frame before the solver step
  - a frame counter and a per-frame performance log
  - snapshot / status helpers for the exporter and the console

Per frame:
  1. Apply every emitter (add_dye / add_force / attractor / eraser)
  2. FluidGrid.step()
  3. Log timings + diagnostics
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .config import SimulationConfig
from .forces import apply_attractor, erase_dye
from .grid import FluidGrid


@dataclass
class DyeSource:
    """Adds color * intensity at (x, y) each frame. Pure black erases dye instead."""
    x: float
    y: float
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    @property
    def is_eraser(self) -> bool:
        return tuple(self.color) == (0.0, 0.0, 0.0)


@dataclass
class ForceSource:
    """Pushes direction * intensity into a disk of `radius` each frame."""
    x: float
    y: float
    direction: Tuple[float, float] = (1.0, 0.0)
    intensity: float = 1.0
    radius: float = 3.0


@dataclass
class AttractorSource:
    """Point sink (or source, if strength < 0) active inside `radius`."""
    x: float
    y: float
    strength: float = 50.0
    radius: float = 20.0


Source = Union[DyeSource, ForceSource, AttractorSource]


class FluidSimulation:
    """
    The complete 2D dye simulation.

    Usage:
        sim = FluidSimulation(width=128, height=128)
        sim.add_source(DyeSource(64, 100, color=(1.0, 0.3, 0.0)))
        sim.add_source(ForceSource(64, 100, direction=(0.0, -1.0), intensity=15.0))
        for frame in range(100):
            sim.step()
            red = sim.grid.dye_r       # Hand to visualizer
    """

    def __init__(self, width: int = 128, height: int = 128,
                 config: Optional[SimulationConfig] = None):
        self.config = config if config is not None else SimulationConfig()
        self.grid = FluidGrid(width, height, self.config)
        self.sources = []
        self.frame = 0
        self.perf_log = []   # stores timing data per frame

    # ── Emitters ───────────────────────────────────────────────────────────

    def add_source(self, source: Source):
        self.sources.append(source)

    def clear_sources(self):
        self.sources.clear()

    def apply_sources(self):
        """Re-apply every persistent emitter once. Emitters off the grid are skipped."""
        g = self.grid
        for src in self.sources:
            x, y = int(round(src.x)), int(round(src.y))
            if not g.in_bounds(x, y):
                continue

            if isinstance(src, DyeSource):
                if src.is_eraser:
                    erase_dye(g, x, y, src.intensity)
                else:
                    r, gr, b = src.color
                    g.add_dye(x, y, (r * src.intensity, gr * src.intensity, b * src.intensity))
            elif isinstance(src, ForceSource):
                dx, dy = src.direction
                g.add_force(x, y, (dx * src.intensity, dy * src.intensity), src.radius)
            elif isinstance(src, AttractorSource):
                apply_attractor(g, src.x, src.y, src.strength, src.radius)
            else:
                raise TypeError(f"Unknown source type: {type(src).__name__}")

    # ── One-shot injection ─────────────────────────────────────────────────

    def add_dye(self, x: int, y: int, color: Tuple[float, float, float]):
        self.grid.add_dye(x, y, color)

    def add_force(self, x: int, y: int, force: Tuple[float, float],
                  radius: Optional[float] = None):
        """Inject a force; radius defaults to config.force_radius."""
        if radius is None:
            radius = self.config.force_radius
        self.grid.add_force(x, y, force, radius)

    # ── Stepping ───────────────────────────────────────────────────────────

    def step(self) -> dict:
        """
        Apply emitters, advance the solver by one dt, log the frame.

        Returns the performance metrics dict for this frame.
        """
        self.apply_sources()
        metrics = self.grid.step()

        self.frame += 1
        total = metrics["total_ms"]
        metrics["frame"] = self.frame
        metrics["fps"] = 1000.0 / total if total > 0 else 0.0
        self.perf_log.append(metrics)
        return metrics

    def get_snapshot(self) -> dict:
        """Current state as flat arrays plus the frame number, ready for np.save."""
        snap = self.grid.save_state()
        snap["frame"] = self.frame
        return snap

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = g.compute_divergence()
        speed = np.sqrt(g.vx ** 2 + g.vy ** 2)
        r, gr, b = g.total_dye()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Grid: {g.width}x{g.height}  |  Sources: {len(self.sources)}")
        print(f"  Dye       : r={r:.3f}, g={gr:.3f}, b={b:.3f}")
        print(f"  Velocity  : max={speed.max():.4f}, mean={speed.mean():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        print(f"  Pressure  : max={g.pressure.max():.4f}, min={g.pressure.min():.4f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
