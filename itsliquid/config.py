"""
config.py — Simulation Parameters
==================================
Every tunable number of the solver lives here, with the defaults the
interactive app ships with.

  dt             : implicit timestep applied by every stage
  viscosity      : velocity diffusion rate  (a = dt * viscosity)
  dye_diffusion  : dye diffusion rate       (a = dt * dye_diffusion)

Iteration counts are fixed per step (not convergence-checked), except the
pressure solve, which may stop early once it has settled.
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path


@dataclass
class SimulationConfig:
    dt: float = 0.1
    viscosity: float = 0.001
    dye_diffusion: float = 0.0001

    velocity_diffuse_iterations: int = 4
    dye_diffuse_iterations: int = 2

    # Pressure solve: hard cap, last zero-based iteration index that may not
    # exit early, and the max per-cell change that counts as converged
    pressure_iterations: int = 20
    pressure_min_iterations: int = 5
    pressure_tolerance: float = 1e-3

    # Radius used when callers inject force without giving one
    force_radius: float = 3.0

    def __post_init__(self):
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.viscosity < 0 or self.dye_diffusion < 0:
            raise ValueError("viscosity and dye_diffusion must be non-negative")
        for name in ("velocity_diffuse_iterations", "dye_diffuse_iterations",
                     "pressure_iterations"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        if self.pressure_min_iterations < 0:
            raise ValueError("pressure_min_iterations must be non-negative")
        if self.pressure_tolerance < 0:
            raise ValueError("pressure_tolerance must be non-negative")
        if self.force_radius <= 0:
            raise ValueError(f"force_radius must be positive, got {self.force_radius}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationConfig":
        """Build a config from a dict, ignoring keys this version doesn't know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path) -> "SimulationConfig":
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
