"""
Display Sink

Shows the current best specimen in a matplotlib window. The window is never
driven by a callback loop: the generation loop calls show() when the output
gate fires and polls poll_cancelled() once per generation. Closing the window
or pressing Escape requests cancellation.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import matplotlib.pyplot as plt

from .image_model import Image


WINDOW_TITLE = "Franklin"
WINDOW_SIZE_INCHES = (5.12, 5.12)


@dataclass
class DisplayHandle:
    """Open display window and its cancellation state"""
    figure: Any
    axes: Any
    artist: Any
    cancelled: bool = False


class MatplotlibDisplay:
    """Display sink backed by a matplotlib figure"""

    def __init__(self, pause_interval: float = 0.001):
        self.pause_interval = pause_interval

    def open(self, dimensions: Tuple[int, int]) -> DisplayHandle:
        """
        Open a window sized for images of the given dimensions.

        Args:
            dimensions: (height, width) of the images that will be shown

        Returns:
            Handle used for subsequent show/poll/close calls
        """
        height, width = dimensions

        plt.ion()
        fig, ax = plt.subplots(figsize=WINDOW_SIZE_INCHES)
        if fig.canvas.manager is not None:
            fig.canvas.manager.set_window_title(WINDOW_TITLE)
        ax.set_axis_off()

        blank = Image.blank(height, width)
        artist = ax.imshow(blank.as_array(), interpolation="nearest")

        handle = DisplayHandle(figure=fig, axes=ax, artist=artist)

        def on_close(event):
            handle.cancelled = True

        def on_key(event):
            if event.key == "escape":
                handle.cancelled = True

        fig.canvas.mpl_connect("close_event", on_close)
        fig.canvas.mpl_connect("key_press_event", on_key)

        plt.show(block=False)
        return handle

    def show(self, handle: DisplayHandle, title: str, image: Image):
        """Replace the displayed image and process pending window events"""
        handle.artist.set_data(image.as_array())
        handle.axes.set_title(title)
        handle.figure.canvas.draw_idle()
        plt.pause(self.pause_interval)

    def poll_cancelled(self, handle: DisplayHandle) -> bool:
        """Non-blocking check for a close or Escape request"""
        if not handle.cancelled:
            handle.figure.canvas.flush_events()
        return handle.cancelled

    def close(self, handle: DisplayHandle):
        plt.close(handle.figure)
