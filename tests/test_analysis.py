import numpy as np

from itsliquid import AnalysisRecorder, FluidGrid, FluidMetrics


def test_metrics_on_empty_grid():
    m = FluidMetrics.analyze(FluidGrid(10, 10), frame=0)
    assert m.total_mass == 0.0
    assert m.max_density == 0.0
    assert m.total_kinetic_energy == 0.0
    assert m.max_velocity == 0.0
    assert m.velocity_divergence == 0.0
    assert m.vorticity == 0.0


def test_metrics_mass_and_energy():
    grid = FluidGrid(10, 10)
    grid.add_dye(4, 4, (1.0, 0.5, 0.5))
    grid.vx[4, 4] = 3.0
    grid.vy[4, 4] = 4.0

    m = FluidMetrics.analyze(grid, frame=7)
    assert m.frame == 7
    assert np.isclose(m.total_mass, 2.0)
    assert np.isclose(m.max_density, 2.0)
    assert np.isclose(m.avg_density, 2.0 / 100)
    assert np.isclose(m.max_velocity, 5.0)
    assert np.isclose(m.total_kinetic_energy, 0.5 * 2.0 * 25.0)
    assert m.density_entropy > 0.0


def test_metrics_ignore_border_cells():
    grid = FluidGrid(10, 10)
    grid.add_dye(0, 5, (10.0, 0.0, 0.0))
    assert FluidMetrics.analyze(grid).total_mass == 0.0


def test_rotation_has_vorticity_not_divergence():
    grid = FluidGrid(21, 21)
    ys, xs = np.mgrid[0:21, 0:21]
    grid.vx[:] = -(ys - 10)
    grid.vy[:] = xs - 10

    m = FluidMetrics.analyze(grid)
    assert np.isclose(m.velocity_divergence, 0.0)
    assert m.vorticity > 0.0


def test_recorder_trends():
    grid = FluidGrid(16, 16)
    recorder = AnalysisRecorder()
    assert recorder.trends() == {}

    grid.add_dye(8, 8, (1.0, 0.0, 0.0))
    recorder.record_frame(grid, 0)
    grid.add_dye(8, 8, (1.0, 0.0, 0.0))
    recorder.record_frame(grid, 1)

    trends = recorder.trends()
    assert np.isclose(trends["mass_pct"], 100.0)
    assert len(recorder.metrics_history) == 2


def test_print_trends(capsys):
    recorder = AnalysisRecorder()
    recorder.print_trends()
    assert capsys.readouterr().out == ""

    grid = FluidGrid(8, 8)
    grid.add_dye(4, 4, (1.0, 1.0, 1.0))
    recorder.record_frame(grid, 0)
    grid.step()
    recorder.record_frame(grid, 1)
    recorder.print_trends()
    assert "TREND ANALYSIS" in capsys.readouterr().out
