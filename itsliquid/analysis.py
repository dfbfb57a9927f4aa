"""
analysis.py — Per-Frame Flow Diagnostics
=========================================
Scalar summaries of a FluidGrid, recorded frame by frame so long runs
can be checked for mass drift, energy decay and mixing.

Dye "density" here is r + g + b per cell. All sums run over interior
cells; averages divide by the full cell count.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from .grid import FluidGrid

# Density histogram bin width for the entropy estimate
ENTROPY_BIN = 0.1


@dataclass
class FluidMetrics:
    frame: int
    total_mass: float
    max_density: float
    avg_density: float
    total_kinetic_energy: float
    max_velocity: float
    avg_velocity: float
    density_entropy: float
    velocity_divergence: float
    vorticity: float

    @classmethod
    def analyze(cls, grid: FluidGrid, frame: int = 0) -> "FluidMetrics":
        size = grid.width * grid.height

        density = (grid.r + grid.g + grid.b)[1:-1, 1:-1].astype(np.float64)
        vx = grid.vx.astype(np.float64)
        vy = grid.vy.astype(np.float64)
        speed = np.sqrt(vx[1:-1, 1:-1] ** 2 + vy[1:-1, 1:-1] ** 2)

        # Shannon entropy (bits) of the quantised density distribution
        bins = np.floor(density / ENTROPY_BIN).astype(np.int64).ravel()
        _, counts = np.unique(bins, return_counts=True)
        p = counts / size
        entropy = float(-(p * np.log2(p)).sum())

        divergence = 0.5 * ((vx[1:-1, 2:] - vx[1:-1, :-2]) +
                            (vy[2:, 1:-1] - vy[:-2, 1:-1]))
        curl = 0.5 * ((vy[1:-1, 2:] - vy[1:-1, :-2]) -
                      (vx[2:, 1:-1] - vx[:-2, 1:-1]))

        total_mass = float(density.sum())
        return cls(
            frame=frame,
            total_mass=total_mass,
            max_density=float(max(density.max(), 0.0)),
            avg_density=total_mass / size,
            total_kinetic_energy=float((0.5 * density * speed ** 2).sum()),
            max_velocity=float(speed.max()),
            avg_velocity=float(speed.sum() / size),
            density_entropy=entropy,
            velocity_divergence=float(np.abs(divergence).sum() / size),
            vorticity=float(np.abs(curl).sum() / size),
        )

    def print_summary(self):
        print(f"Frame {self.frame} Metrics:")
        print(f"  Total Mass: {self.total_mass:.6f}")
        print(f"  Max Density: {self.max_density:.6f}")
        print(f"  Avg Density: {self.avg_density:.6f}")
        print(f"  Kinetic Energy: {self.total_kinetic_energy:.6f}")
        print(f"  Max Velocity: {self.max_velocity:.6f}")
        print(f"  Avg Velocity: {self.avg_velocity:.6f}")
        print(f"  Density Entropy: {self.density_entropy:.6f}")
        print(f"  Velocity Divergence: {self.velocity_divergence:.6f}")
        print(f"  Vorticity: {self.vorticity:.6f}")
        print()


def _percent_change(first: float, last: float, floor: float = 0.0) -> float:
    base = max(first, floor)
    if base == 0.0:
        return 0.0
    return (last - first) / base * 100.0


@dataclass
class AnalysisRecorder:
    metrics_history: List[FluidMetrics] = field(default_factory=list)

    def record_frame(self, grid: FluidGrid, frame: int) -> FluidMetrics:
        metrics = FluidMetrics.analyze(grid, frame)
        self.metrics_history.append(metrics)
        return metrics

    def trends(self) -> dict:
        """Percentage change first → last record. Empty with fewer than 2 records."""
        if len(self.metrics_history) < 2:
            return {}
        first, last = self.metrics_history[0], self.metrics_history[-1]
        return {
            "mass_pct"   : _percent_change(first.total_mass, last.total_mass),
            "energy_pct" : _percent_change(first.total_kinetic_energy,
                                           last.total_kinetic_energy, floor=0.001),
            "entropy_pct": _percent_change(first.density_entropy,
                                           last.density_entropy, floor=0.001),
        }

    def print_trends(self):
        trends = self.trends()
        if not trends:
            return
        first, last = self.metrics_history[0], self.metrics_history[-1]
        print("=== TREND ANALYSIS ===")
        print(f"Mass change: {first.total_mass:.6f} -> {last.total_mass:.6f} "
              f"({trends['mass_pct']:+.3f}%)")
        print(f"Kinetic Energy change: {first.total_kinetic_energy:.6f} -> "
              f"{last.total_kinetic_energy:.6f} ({trends['energy_pct']:+.3f}%)")
        print(f"Entropy change: {first.density_entropy:.6f} -> {last.density_entropy:.6f} "
              f"({trends['entropy_pct']:+.3f}%)")
