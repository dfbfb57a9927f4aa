"""
visualizer.py — Live RGB Dye Viewer
====================================
Renders the three dye channels as one RGB image.

Dye is an HDR accumulator (values can go well above 1.0), so each
channel is tone-mapped with Reinhard x / (1 + x) before display:
  - 0     → black
  - 1     → half brightness
  - ≫ 1   → approaches full brightness, never clips

Uses matplotlib FuncAnimation for real-time updates.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation


def tone_map(r: np.ndarray, g: np.ndarray, b: np.ndarray, height: int, width: int) -> np.ndarray:
    """
    Reinhard tone mapping of flat dye channels into an (H, W, 3) image in [0, 1].

    Negative values (which the solver never produces) are clamped to 0.
    """
    rgb = np.stack([r, g, b], axis=-1).reshape(height, width, 3)
    rgb = np.maximum(rgb, 0.0)
    return rgb / (1.0 + rgb)


def render_frame(grid) -> np.ndarray:
    """Tone-mapped RGB image of a FluidGrid."""
    return tone_map(grid.dye_r, grid.dye_g, grid.dye_b, grid.height, grid.width)


def render_velocity(grid) -> np.ndarray:
    """
    Velocity field as an (H, W, 3) image: |vx| in red, |vy| in green,
    both saturating at 1, with a constant mid-grey blue channel.
    """
    shape = (grid.height, grid.width)
    img = np.empty(shape + (3,), dtype=np.float32)
    img[..., 0] = np.minimum(np.abs(grid.velocity_x), 1.0).reshape(shape)
    img[..., 1] = np.minimum(np.abs(grid.velocity_y), 1.0).reshape(shape)
    img[..., 2] = 0.5
    return img


class FluidVisualizer:
    """
    Real-time viewer of the dye field.

    Usage (standalone):
        from itsliquid import FluidSimulation, DyeSource, ForceSource
        from visualizer import FluidVisualizer

        sim = FluidSimulation(width=128, height=128)
        sim.add_source(DyeSource(64, 110, color=(1.0, 0.4, 0.1)))
        sim.add_source(ForceSource(64, 110, direction=(0.0, -1.0), intensity=20.0))
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation):
        """
        Args:
            simulation : FluidSimulation instance
        """
        self.sim = simulation
        self._setup_figure()

    def _setup_figure(self):
        """Initialize the matplotlib figure with a single RGB image."""
        g = self.sim.grid
        aspect = g.width / g.height
        self.fig, self.ax = plt.subplots(figsize=(6 * aspect, 6))
        self.fig.patch.set_facecolor('#0a0a0a')

        self.ax.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        for spine in self.ax.spines.values():
            spine.set_edgecolor('#333333')

        # Row 0 is y = 0, so keep the origin at the top like a screen
        self.img = self.ax.imshow(
            render_frame(g),
            interpolation='bilinear',
            origin='upper',
            aspect='equal'
        )

        self.title_text = self.fig.suptitle(
            "itsliquid — Frame 0 | 0.0 FPS",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        plt.tight_layout()

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the image."""
        metrics = self.sim.step()

        self.img.set_data(render_frame(self.sim.grid))

        self.title_text.set_text(
            f"itsliquid — Frame {metrics['frame']} | "
            f"{metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )

        return [self.img, self.title_text]

    def run(self, fps: int = 30, frames: int = 1000):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False
        )
        plt.show()

    def save_gif(self, path: str = "itsliquid.gif", fps: int = 20, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=1000 // fps, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
