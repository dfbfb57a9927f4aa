"""
main.py — Entry Point
======================
Runs the dye simulation in one of four modes.

Usage:
    python main.py                          # Headless stats run (default)
    python main.py --mode live              # Live matplotlib window
    python main.py --mode benchmark         # Per-stage timing breakdown
    python main.py --mode export --output frames --frames 200
    python main.py --config my_params.json  # Override solver parameters
"""

import argparse

import numpy as np


def build_demo(width: int, height: int, config=None):
    """Two coloured jets firing into each other plus a slow attractor in the middle."""
    from itsliquid import AttractorSource, DyeSource, FluidSimulation, ForceSource

    sim = FluidSimulation(width=width, height=height, config=config)
    cy = height // 2
    left, right = width // 5, width - width // 5

    sim.add_source(DyeSource(left, cy, color=(1.0, 0.35, 0.05), intensity=0.5))
    sim.add_source(ForceSource(left, cy, direction=(1.0, 0.0), intensity=12.0, radius=3.0))
    sim.add_source(DyeSource(right, cy, color=(0.05, 0.4, 1.0), intensity=0.5))
    sim.add_source(ForceSource(right, cy, direction=(-1.0, 0.0), intensity=12.0, radius=3.0))
    sim.add_source(AttractorSource(width / 2, cy, strength=5.0, radius=min(width, height) / 4))
    return sim


def run_live(width: int, height: int, config=None):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({width}x{height})...")
    print("Close the window to exit.\n")

    sim = build_demo(width, height, config)
    viz = FluidVisualizer(sim)
    viz.run(fps=30)


def run_headless(width: int, height: int, frames: int = 100, config=None):
    """Run simulation without display — prints stats and trends."""
    from itsliquid import AnalysisRecorder

    print(f"\nHeadless simulation | {width}x{height} | {frames} frames")
    print(f"{'─'*60}")

    sim = build_demo(width, height, config)
    recorder = AnalysisRecorder()
    recorder.record_frame(sim.grid, 0)
    total_times = []

    for f in range(1, frames + 1):
        metrics = sim.step()
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            r, g, b = metrics["dye_total"]
            print(f"  Frame {f:04d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"dye=({r:.1f}, {g:.1f}, {b:.1f})")
        if f % 25 == 0:
            recorder.record_frame(sim.grid, f).print_summary()

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")
    recorder.print_trends()
    sim.print_status()


def run_benchmark(width: int, height: int, frames: int = 50, config=None):
    """
    Detailed performance breakdown.
    Shows how long each solver stage takes.
    """
    print(f"\n{'='*60}")
    print(f"  SOLVER BENCHMARK | {width}x{height} | {frames} frames")
    print(f"{'='*60}")

    sim = build_demo(width, height, config)

    # Warm up
    for _ in range(5):
        sim.step()

    logs = [sim.step() for _ in range(frames)]

    keys = ["diffuse_vel_ms", "project1_ms", "advect_vel_ms",
            "project2_ms", "diffuse_dye_ms", "advect_dye_ms", "total_ms"]

    print(f"\n{'Stage':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    iters = [n for m in logs for n in m["pressure_iters"]]
    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  Pressure iterations: mean={np.mean(iters):.1f}, max={np.max(iters)}")
    print(f"  FPS (solver only): {1000/np.mean(total_vals):.1f}")


def run_export(width: int, height: int, frames: int, output: str,
               save_every: int = 1, config=None):
    """Step the demo scene and write arrays + PNGs for every saved frame."""
    from data_pipeline import FrameExporter

    sim = build_demo(width, height, config)
    exporter = FrameExporter(output_dir=output, run_name="demo")
    exporter.export_run(sim, n_frames=frames, save_every=save_every)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="2D Stable Fluids dye simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark", "export"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--width",  type=int, default=128, help="Grid width in cells (default: 128)")
    parser.add_argument("--height", type=int, default=128, help="Grid height in cells (default: 128)")
    parser.add_argument("--frames", type=int, default=100, help="Number of frames")
    parser.add_argument("--config", type=str, default=None, help="JSON file with solver parameters")
    parser.add_argument("--output", type=str, default="frames", help="Export directory")
    parser.add_argument("--save-every", type=int, default=1, help="Export every Nth frame")

    args = parser.parse_args()

    config = None
    if args.config:
        from itsliquid import SimulationConfig
        config = SimulationConfig.load(args.config)

    if args.mode == "live":
        run_live(args.width, args.height, config)
    elif args.mode == "headless":
        run_headless(args.width, args.height, frames=args.frames, config=config)
    elif args.mode == "benchmark":
        run_benchmark(args.width, args.height, frames=args.frames, config=config)
    elif args.mode == "export":
        run_export(args.width, args.height, args.frames, args.output,
                   save_every=args.save_every, config=config)
