import json

import pytest

from itsliquid import FluidGrid, SimulationConfig


def test_defaults():
    cfg = SimulationConfig()
    assert cfg.dt == 0.1
    assert cfg.viscosity == 0.001
    assert cfg.dye_diffusion == 0.0001
    assert cfg.velocity_diffuse_iterations == 4
    assert cfg.dye_diffuse_iterations == 2
    assert cfg.pressure_iterations == 20


@pytest.mark.parametrize("kwargs", [
    {"dt": 0.0},
    {"dt": -0.1},
    {"viscosity": -1.0},
    {"dye_diffusion": -1e-5},
    {"velocity_diffuse_iterations": 0},
    {"dye_diffuse_iterations": 0},
    {"pressure_iterations": 0},
    {"pressure_min_iterations": -1},
    {"pressure_tolerance": -1e-3},
    {"force_radius": 0.0},
])
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SimulationConfig(**kwargs)


def test_save_load_roundtrip(tmp_path):
    cfg = SimulationConfig(dt=0.05, viscosity=0.002, pressure_iterations=30)
    path = tmp_path / "nested" / "params.json"
    cfg.save(path)

    assert json.loads(path.read_text())["dt"] == 0.05
    assert SimulationConfig.load(path) == cfg


def test_from_dict_ignores_unknown_keys():
    cfg = SimulationConfig.from_dict({"dt": 0.2, "colormap": "magma"})
    assert cfg.dt == 0.2
    assert cfg.viscosity == SimulationConfig().viscosity


def test_grid_uses_config():
    cfg = SimulationConfig(dt=0.25)
    grid = FluidGrid(8, 8, cfg)
    assert grid.dt == 0.25
    assert grid.config is cfg
