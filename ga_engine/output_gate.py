"""
Output gate for the evolution engine.

Once per generation, decides whether the elite goes to the display and/or
to the output directory.
"""

from pathlib import Path
from typing import Any, Optional, Tuple

from evoimage.image_model import Image

from .data_models import DisplayCondition, SaveCondition
from .io_utils import ImageWriter


class OutputGate:
    """
    Pushes the elite to the display and save sinks on their cadences.

    Both checks are independent and may fire in the same generation.

    Attributes:
        display_condition: Display cadence
        save_condition: Save cadence
        display: Display sink (needs show(handle, title, image)); None when
            the display is disabled
        display_handle: Handle returned by the display sink's open()
        writer: Save sink; None when saving is disabled
    """

    def __init__(
        self,
        display_condition: DisplayCondition = None,
        save_condition: SaveCondition = None,
        display: Any = None,
        display_handle: Any = None,
        writer: Optional[ImageWriter] = None
    ):
        self.display_condition = display_condition or DisplayCondition.none()
        self.save_condition = save_condition or SaveCondition.never()
        self.display = display
        self.display_handle = display_handle
        self.writer = writer

        if self.display_condition.enabled and self.display is None:
            raise ValueError("A display sink is required when the display condition is enabled")
        if self.save_condition.enabled and self.writer is None:
            raise ValueError("A save sink is required when the save condition is enabled")

    def process(self, generation: int, elite: Image, best_score: int) -> Tuple[bool, Optional[Path]]:
        """
        Apply both conditions for one generation.

        Args:
            generation: Generation counter, already incremented for this tick
            elite: Best image of the generation
            best_score: Score of the elite, shown in the window title

        Returns:
            Tuple of (displayed, saved_path); saved_path is None when nothing
            was written
        """
        displayed = False
        saved_path = None

        if self.display_condition.should_fire(generation):
            title = f"Generation {generation} (score {best_score})"
            self.display.show(self.display_handle, title, elite)
            displayed = True

        if self.save_condition.should_fire(generation):
            saved_path = self.writer.write(generation, elite)

        return displayed, saved_path
