"""
data_pipeline.py — Frame Exporter
==================================
Captures simulation frames and writes them to disk as raw arrays and
tone-mapped PNGs.

Output structure on disk:
  frames/
    run/
      frame_0000_velocity_x.npy    ← shape (H*W,) flat, index y*W + x
      frame_0000_velocity_y.npy
      frame_0000_dye_r.npy
      frame_0000_dye_g.npy
      frame_0000_dye_b.npy
      frame_0000.png               ← Reinhard tone-mapped RGB
      frame_0000_velocity.png      ← |vx| red, |vy| green
      ...
    metadata.json                  ← grid size, config, sources, frame list

Load back with:
  r = np.load("frames/run/frame_0000_dye_r.npy").reshape(H, W)
"""

import json
from dataclasses import asdict
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from itsliquid import FluidSimulation
from visualizer import render_frame, render_velocity

# Buffers written as .npy for every saved frame
ARRAY_KEYS = ("velocity_x", "velocity_y", "dye_r", "dye_g", "dye_b")

# PNG kinds written per saved frame: "dye" → frame_NNNN.png, "velocity" → frame_NNNN_velocity.png
IMAGE_KINDS = ("dye", "velocity")


class FrameExporter:
    """
    Writes simulation frames to disk.

    Usage:
        exporter = FrameExporter(output_dir="frames", run_name="plume")
        exporter.export_run(sim, n_frames=200, save_every=5)
    """

    def __init__(self, output_dir: str = "frames", run_name: str = "run",
                 save_arrays: bool = True, save_images: bool = True):
        self.output_dir = Path(output_dir)
        self.run_dir = self.output_dir / run_name
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.save_arrays = save_arrays
        self.save_images = save_images
        self.saved_frames = []

    def save_frame(self, sim: FluidSimulation) -> Path:
        """
        Write the current state of `sim`. Returns the path prefix used.
        """
        prefix = self.run_dir / f"frame_{sim.frame:04d}"

        if self.save_arrays:
            snapshot = sim.get_snapshot()
            for key in ARRAY_KEYS:
                np.save(f"{prefix}_{key}.npy", snapshot[key])

        if self.save_images:
            plt.imsave(f"{prefix}.png", render_frame(sim.grid))
            plt.imsave(f"{prefix}_velocity.png", render_velocity(sim.grid))

        self.saved_frames.append(sim.frame)
        return prefix

    def export_run(self, sim: FluidSimulation, n_frames: int = 100, save_every: int = 1) -> dict:
        """
        Step `sim` n_frames times, saving the initial state and every
        `save_every`-th frame after it, then write metadata.json.
        """
        if save_every < 1:
            raise ValueError(f"save_every must be at least 1, got {save_every}")

        print(f"\n[Export] {n_frames} frames | every {save_every} | → {self.run_dir}")

        self.save_frame(sim)
        for i in range(1, n_frames + 1):
            metrics = sim.step()
            if i % save_every == 0:
                self.save_frame(sim)

            if i % 50 == 0:
                r, g, b = metrics["dye_total"]
                print(f"  Frame {i:04d}/{n_frames} | "
                      f"{metrics['fps']:.1f} FPS | "
                      f"div_max={metrics['divergence_max']:.5f} | "
                      f"dye=({r:.2f}, {g:.2f}, {b:.2f})")

        meta = self.write_metadata(sim)
        print(f"[Export] Done. Saved {len(self.saved_frames)} frames → {self.run_dir}")
        return meta

    def write_metadata(self, sim: FluidSimulation) -> dict:
        meta = {
            "width"        : sim.grid.width,
            "height"       : sim.grid.height,
            "frames"       : sim.frame,
            "saved_frames" : list(self.saved_frames),
            "arrays"       : list(ARRAY_KEYS) if self.save_arrays else [],
            "images"       : list(IMAGE_KINDS) if self.save_images else [],
            "config"       : sim.config.to_dict(),
            "sources"      : [{"type": type(s).__name__, **asdict(s)} for s in sim.sources],
            "directory"    : str(self.run_dir),
        }
        with open(self.output_dir / "metadata.json", "w") as f:
            json.dump(meta, f, indent=2)
        return meta
