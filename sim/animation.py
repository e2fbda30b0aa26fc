"""
Animation driver for playback controllers.

A matplotlib FuncAnimation supplies the frames: each frame ticks the
scheduler once and redraws the controller's snapshot. Supports exporting
as:
- GIF animations (requires pillow)
- HTML5 animations (for Jupyter notebooks)
"""

import logging
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, PillowWriter
from typing import Optional, Dict, Any, Callable, Tuple

from .plotting import plot_snapshot

logger = logging.getLogger(__name__)


class PlaybackAnimation:
    """
    Drive a PlaybackController from matplotlib frames.

    Frame times are synthetic (frame / fps), so exported animations are
    reproducible regardless of how long rendering takes.
    """

    def __init__(self, controller, fps: int = 30,
                 figsize: Tuple[int, int] = (8, 5), dpi: int = 100,
                 context: Optional[Dict[str, Any]] = None,
                 render: Optional[Callable] = None):
        """
        Args:
            controller: PlaybackController (already loaded)
            fps: Frames per second
            figsize: Figure size in inches
            dpi: Resolution for output files
            context: Extra inputs for plot_snapshot (array, matrices)
            render: Custom renderer (snapshot, ax, context) -> ax
        """
        self.controller = controller
        self.fps = fps
        self.figsize = figsize
        self.dpi = dpi
        self.context = context or {}
        self.render = render or plot_snapshot
        self.frames_drawn = 0
        self.figure = None

    def _frame(self, i: int, ax: plt.Axes):
        self.controller.scheduler.tick(i / self.fps)
        ax.clear()
        snap = self.controller.snapshot()
        if snap is not None:
            self.render(snap, ax, self.context)
        self.frames_drawn += 1
        return []

    def build(self, n_frames: int, autostart: bool = True) -> FuncAnimation:
        """
        Create the FuncAnimation.

        Args:
            n_frames: Number of frames
            autostart: Call controller.start() before the first frame
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        self.figure = fig
        if autostart:
            self.controller.start()
        return FuncAnimation(fig, self._frame, fargs=(ax,), frames=n_frames,
                             interval=1000 / self.fps, blit=False, repeat=False)

    def save_gif(self, anim: FuncAnimation, filename: str) -> Optional[str]:
        """
        Save animation as GIF.

        Returns:
            Path written, or None if saving failed
        """
        if not filename.endswith('.gif'):
            filename += '.gif'

        try:
            anim.save(filename, writer=PillowWriter(fps=self.fps), dpi=self.dpi)
        except (OSError, RuntimeError, ValueError) as e:
            logger.error("Error saving GIF %s: %s", filename, e)
            return None
        logger.info("Animation saved to %s", filename)
        return filename

    def save_html(self, anim: FuncAnimation, filename: str) -> str:
        """Save animation as HTML5 (for viewing in browser)."""
        if not filename.endswith('.html'):
            filename += '.html'

        html = anim.to_jshtml()
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(html)
        logger.info("Animation saved to %s", filename)
        return filename


def export_playback(controller, output_path: str, duration: float,
                    fps: int = 20, format: str = 'gif',
                    context: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Convenience function to export a playback session as an animation.

    Args:
        controller: Loaded PlaybackController
        output_path: Output file path (extension added automatically)
        duration: Seconds of playback to record
        fps: Frames per second
        format: 'gif' or 'html'
        context: Extra inputs for plot_snapshot

    Returns:
        Path written (None if a GIF could not be written)
    """
    player = PlaybackAnimation(controller, fps=fps, context=context)
    anim = player.build(int(duration * fps))

    try:
        if format.lower() == 'gif':
            return player.save_gif(anim, output_path)
        if format.lower() == 'html':
            return player.save_html(anim, output_path)
        raise ValueError(f"Unknown format: {format}")
    finally:
        plt.close(player.figure)
