"""
Mutation operators for the evolution engine.

Each mutator paints one random shape of a single random color onto an image,
in place. In grayscale mode the color is a single gray level so the three
channels stay equal.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Type

import numpy as np

from evoimage.image_model import ColorMode, Image


class MutationStrategy(ABC):
    """
    Mutates a single specimen in place.

    Implementations must not keep mutable state between calls: one instance
    is shared by every worker thread of a run. All randomness comes from the
    rng argument, which is private to the calling task.
    """

    name = "base"

    def mutate(self, image: Image, color_mode: ColorMode, rng: np.random.Generator):
        """
        Apply one mutation to the image.

        Args:
            image: Image to mutate in place
            color_mode: Selects the RGB or grayscale mutation path
            rng: Random number generator
        """
        mask = self.shape_mask(image.height, image.width, rng)
        color = random_color(color_mode, rng)
        image.as_array()[mask] = color

    @abstractmethod
    def shape_mask(self, height: int, width: int, rng: np.random.Generator) -> np.ndarray:
        """Return a (height, width) boolean mask of the pixels to repaint"""


def random_color(color_mode: ColorMode, rng: np.random.Generator) -> np.ndarray:
    """
    Draw a random fill color.

    Returns:
        uint8 array of three channels; all equal in grayscale mode
    """
    if color_mode == ColorMode.GRAYSCALE:
        gray = rng.integers(0, 256)
        return np.array([gray, gray, gray], dtype=np.uint8)
    return rng.integers(0, 256, size=3).astype(np.uint8)


class RectangleMutator(MutationStrategy):
    """Paints a random axis-aligned rectangle"""

    name = "rectangle"

    def shape_mask(self, height: int, width: int, rng: np.random.Generator) -> np.ndarray:
        x = int(rng.integers(0, max(width - 1, 1)))
        y = int(rng.integers(0, max(height - 1, 1)))

        rect_width = int(rng.integers(0, width - x)) + 1
        rect_height = int(rng.integers(0, height - y)) + 1

        mask = np.zeros((height, width), dtype=bool)
        mask[y:y + rect_height, x:x + rect_width] = True
        return mask


class TriangleMutator(MutationStrategy):
    """Paints a filled triangle spanned by three distinct random points"""

    name = "triangle"

    def random_vertices(self, height: int, width: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw three distinct vertices, as (x, y) rows.

        Images with fewer than three pixels cannot hold three distinct
        points; vertices may then repeat.
        """
        total = height * width
        indices = rng.choice(total, size=3, replace=total < 3)
        return np.stack([indices % width, indices // width], axis=1)

    def shape_mask(self, height: int, width: int, rng: np.random.Generator) -> np.ndarray:
        vertices = self.random_vertices(height, width, rng)
        ys, xs = np.mgrid[0:height, 0:width]

        # Edge functions: a pixel is inside when it lies on the same side of
        # all three edges (zero counts as inside, so edges are filled too).
        edges = []
        for i in range(3):
            (x0, y0), (x1, y1) = vertices[i], vertices[(i + 1) % 3]
            edges.append((x1 - x0) * (ys - y0) - (y1 - y0) * (xs - x0))

        non_negative = (edges[0] >= 0) & (edges[1] >= 0) & (edges[2] >= 0)
        non_positive = (edges[0] <= 0) & (edges[1] <= 0) & (edges[2] <= 0)
        return non_negative | non_positive


class CircleMutator(MutationStrategy):
    """Paints a filled circle that fits entirely inside the image"""

    name = "circle"

    def random_circle(self, height: int, width: int, rng: np.random.Generator) -> Tuple[int, int, int]:
        """
        Draw a center and a radius.

        Returns:
            (center_x, center_y, radius)
        """
        cx = int(rng.integers(0, width))
        cy = int(rng.integers(0, height))

        # Largest radius keeping the circle inside the image
        limit = max(1, min(cx + 1, cy + 1, width - cx, height - cy))
        radius = int(rng.integers(1, limit + 1))
        return cx, cy, radius

    def shape_mask(self, height: int, width: int, rng: np.random.Generator) -> np.ndarray:
        cx, cy, radius = self.random_circle(height, width, rng)
        ys, xs = np.ogrid[0:height, 0:width]
        return (xs - cx) ** 2 + (ys - cy) ** 2 < radius ** 2


MUTATORS: Dict[str, Type[MutationStrategy]] = {
    RectangleMutator.name: RectangleMutator,
    TriangleMutator.name: TriangleMutator,
    CircleMutator.name: CircleMutator,
}


def create_mutator(name: str) -> MutationStrategy:
    """
    Instantiate a mutator by its registry name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return MUTATORS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown mutator: '{name}'. Must be one of: {', '.join(MUTATORS)}"
        )
