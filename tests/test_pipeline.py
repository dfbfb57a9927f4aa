import json

import matplotlib.pyplot as plt
import numpy as np
import pytest

from data_pipeline import ARRAY_KEYS, FrameExporter
from itsliquid import DyeSource, FluidGrid, FluidSimulation, ForceSource
from visualizer import render_frame, render_velocity, tone_map


def test_tone_map_reinhard():
    r = np.array([0.0, 1.0, 3.0, -1.0], dtype=np.float32)
    img = tone_map(r, r, r, 2, 2)
    assert img.shape == (2, 2, 3)
    assert np.allclose(img[0, 0], 0.0)
    assert np.allclose(img[0, 1], 0.5)
    assert np.allclose(img[1, 0], 0.75)
    assert np.allclose(img[1, 1], 0.0)     # negatives clamp to black
    assert img.max() < 1.0


def test_render_frame_layout():
    grid = FluidGrid(6, 4)
    grid.add_dye(5, 1, (1.0, 0.0, 0.0))
    img = render_frame(grid)
    assert img.shape == (4, 6, 3)
    assert np.isclose(img[1, 5, 0], 0.5)
    assert img[1, 5, 1] == 0.0


def test_render_velocity_channels():
    grid = FluidGrid(6, 4)
    grid.vx[2, 3] = -0.25
    grid.vy[2, 3] = 3.0
    img = render_velocity(grid)
    assert img.shape == (4, 6, 3)
    assert np.allclose(img[2, 3], (0.25, 1.0, 0.5))     # |vy| saturates at 1
    assert np.allclose(img[0, 0], (0.0, 0.0, 0.5))


def test_export_run_writes_frames(tmp_path):
    sim = FluidSimulation(width=16, height=12)
    sim.add_source(DyeSource(8, 6, color=(1.0, 0.2, 0.0)))
    sim.add_source(ForceSource(8, 6, direction=(1.0, 0.0), intensity=3.0, radius=2.0))

    exporter = FrameExporter(output_dir=str(tmp_path), run_name="plume")
    meta = exporter.export_run(sim, n_frames=4, save_every=2)

    run_dir = tmp_path / "plume"
    assert exporter.saved_frames == [0, 2, 4]
    for frame in (0, 2, 4):
        assert (run_dir / f"frame_{frame:04d}.png").exists()
        assert (run_dir / f"frame_{frame:04d}_velocity.png").exists()
        for key in ARRAY_KEYS:
            assert (run_dir / f"frame_{frame:04d}_{key}.npy").exists()

    dye_r = np.load(run_dir / "frame_0004_dye_r.npy")
    assert dye_r.shape == (16 * 12,)
    assert np.array_equal(dye_r, sim.grid.dye_r)

    vx = np.load(run_dir / "frame_0004_velocity_x.npy").reshape(12, 16)
    assert np.abs(vx).max() > 0.0
    vel_img = plt.imread(run_dir / "frame_0004_velocity.png")
    assert vel_img.shape[:2] == (12, 16)
    assert np.allclose(vel_img[..., 0], np.minimum(np.abs(vx), 1.0), atol=2 / 255)
    assert np.allclose(vel_img[..., 2], 0.5, atol=2 / 255)

    on_disk = json.loads((tmp_path / "metadata.json").read_text())
    assert on_disk["saved_frames"] == meta["saved_frames"]
    assert on_disk["width"] == 16 and on_disk["height"] == 12
    assert on_disk["frames"] == 4
    assert on_disk["images"] == ["dye", "velocity"]
    assert [s["type"] for s in on_disk["sources"]] == ["DyeSource", "ForceSource"]
    assert on_disk["config"]["dt"] == sim.config.dt


def test_export_images_only(tmp_path):
    sim = FluidSimulation(width=8, height=8)
    exporter = FrameExporter(output_dir=str(tmp_path), save_arrays=False)
    exporter.save_frame(sim)
    assert (tmp_path / "run" / "frame_0000.png").exists()
    assert (tmp_path / "run" / "frame_0000_velocity.png").exists()
    assert not list((tmp_path / "run").glob("*.npy"))


def test_export_rejects_bad_interval(tmp_path):
    exporter = FrameExporter(output_dir=str(tmp_path))
    with pytest.raises(ValueError):
        exporter.export_run(FluidSimulation(width=8, height=8), n_frames=2, save_every=0)
