"""
Crossover operators for the evolution engine.

A crossover function breeds two parent images into a new child image. The
child must own its pixel buffer: it is mutated in place later on, and a
shared buffer would leak those mutations into the parents.
"""

from abc import ABC, abstractmethod
from typing import Dict, Type

import numpy as np

from evoimage.image_model import Image


class CrossoverStrategy(ABC):
    """
    Breeds two specimens.

    Crossover runs on the orchestrating thread only, so implementations may
    keep state between calls.
    """

    name = "base"

    @abstractmethod
    def breed(self, parent_a: Image, parent_b: Image, rng: np.random.Generator) -> Image:
        """
        Create a child from two parents.

        The child does not have to mix both parents; some strategies ignore
        one of them.

        Args:
            parent_a: First parent
            parent_b: Second parent
            rng: Random number generator

        Returns:
            New Image with the parents' dimensions
        """


def _check_same_shape(parent_a: Image, parent_b: Image):
    if parent_a.dimensions != parent_b.dimensions:
        raise ValueError(
            f"Parents must have the same dimensions: {parent_a.dimensions} vs {parent_b.dimensions}"
        )


class LeftOrRightCloneCrossover(CrossoverStrategy):
    """Alternately clones the second and the first parent"""

    name = "left_or_right"

    def __init__(self):
        self.counter = 0

    def breed(self, parent_a: Image, parent_b: Image, rng: np.random.Generator) -> Image:
        self.counter += 1
        if self.counter % 2 == 0:
            return parent_a.copy()
        return parent_b.copy()


class EqualHalvesCrossover(CrossoverStrategy):
    """First half of the pixel sequence from parent A, the rest from parent B"""

    name = "equal_halves"

    def breed(self, parent_a: Image, parent_b: Image, rng: np.random.Generator) -> Image:
        _check_same_shape(parent_a, parent_b)

        midpoint = (len(parent_a) + 1) // 2
        pixels = np.concatenate([parent_a.pixels[:midpoint], parent_b.pixels[midpoint:]])
        return Image(parent_a.height, parent_a.width, pixels)


class ArithmeticAverageCrossover(CrossoverStrategy):
    """Per-channel integer mean of both parents"""

    name = "arithmetic_average"

    def breed(self, parent_a: Image, parent_b: Image, rng: np.random.Generator) -> Image:
        _check_same_shape(parent_a, parent_b)

        total = parent_a.pixels.astype(np.uint16) + parent_b.pixels.astype(np.uint16)
        return Image(parent_a.height, parent_a.width, (total // 2).astype(np.uint8))


class UniformCrossover(CrossoverStrategy):
    """Each pixel is taken from either parent with equal probability"""

    name = "uniform"

    def breed(self, parent_a: Image, parent_b: Image, rng: np.random.Generator) -> Image:
        _check_same_shape(parent_a, parent_b)

        take_a = rng.random(len(parent_a)) < 0.5
        pixels = np.where(take_a[:, None], parent_a.pixels, parent_b.pixels)
        return Image(parent_a.height, parent_a.width, pixels)


CROSSOVERS: Dict[str, Type[CrossoverStrategy]] = {
    LeftOrRightCloneCrossover.name: LeftOrRightCloneCrossover,
    EqualHalvesCrossover.name: EqualHalvesCrossover,
    ArithmeticAverageCrossover.name: ArithmeticAverageCrossover,
    UniformCrossover.name: UniformCrossover,
}


def create_crossover(name: str) -> CrossoverStrategy:
    """
    Instantiate a crossover function by its registry name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return CROSSOVERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown crossover function: '{name}'. Must be one of: {', '.join(CROSSOVERS)}"
        )
