"""
itsliquid — 2D Stable Fluids with RGB Dye
==========================================
Exports the interfaces the app layer uses.

visualizer.py imports   : FluidSimulation → grid.dye_r / dye_g / dye_b
data_pipeline.py imports: FluidSimulation → get_snapshot()
main.py imports         : SimulationConfig, FluidSimulation, emitters, AnalysisRecorder
"""

from .analysis import AnalysisRecorder, FluidMetrics
from .config import SimulationConfig
from .grid import FluidGrid
from .simulation import AttractorSource, DyeSource, FluidSimulation, ForceSource

__all__ = [
    "FluidGrid",
    "FluidSimulation",
    "SimulationConfig",
    "DyeSource",
    "ForceSource",
    "AttractorSource",
    "FluidMetrics",
    "AnalysisRecorder",
]
