"""
Fitness functions for the evolution engine.

A fitness function measures how far a candidate is from the target image.
Scores are non-negative integers and lower is better; identical images score
zero.
"""

from abc import ABC, abstractmethod
from typing import Dict, Type

import numpy as np

from evoimage.image_model import ColorMode, Image


class SizeMismatchError(ValueError):
    """Raised when two images with different pixel counts are compared"""
    pass


def _channel_differences(target: Image, candidate: Image) -> np.ndarray:
    """
    Signed per-channel differences as an int64 (pixels, 3) array.

    Raises:
        SizeMismatchError: If the images have different pixel counts
    """
    if len(target) != len(candidate):
        raise SizeMismatchError(
            f"Images must be of the same size: {len(target)} vs {len(candidate)} pixels"
        )
    return target.pixels.astype(np.int64) - candidate.pixels.astype(np.int64)


class FitnessStrategy(ABC):
    """
    Scores a candidate against the target.

    Implementations are shared read-only by all worker threads.
    """

    name = "base"

    def score(self, target: Image, candidate: Image, color_mode: ColorMode) -> int:
        """
        Compute the distance between target and candidate.

        Args:
            target: Image being approximated
            candidate: Specimen to score
            color_mode: Selects the RGB or grayscale scoring path

        Returns:
            Non-negative score, lower is more similar

        Raises:
            SizeMismatchError: If the images have different pixel counts
        """
        diff = _channel_differences(target, candidate)
        if color_mode == ColorMode.GRAYSCALE:
            # All three channels are equal, so the red channel stands in
            # for the pixel and is weighted by the channel count.
            return int(self.reduce(diff[:, 0] * 3))
        return int(self.reduce(diff))

    @abstractmethod
    def reduce(self, diff: np.ndarray) -> np.integer:
        """Collapse an array of signed differences into a total distance"""


class SquareDistance(FitnessStrategy):
    """Sum of squared channel differences"""

    name = "square_distance"

    def reduce(self, diff: np.ndarray) -> np.integer:
        return np.sum(diff * diff)


class AbsoluteDistance(FitnessStrategy):
    """Sum of absolute channel differences"""

    name = "absolute_distance"

    def reduce(self, diff: np.ndarray) -> np.integer:
        return np.sum(np.abs(diff))


FITNESS_FUNCTIONS: Dict[str, Type[FitnessStrategy]] = {
    SquareDistance.name: SquareDistance,
    AbsoluteDistance.name: AbsoluteDistance,
}


def create_fitness(name: str) -> FitnessStrategy:
    """
    Instantiate a fitness function by its registry name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return FITNESS_FUNCTIONS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown fitness function: '{name}'. Must be one of: {', '.join(FITNESS_FUNCTIONS)}"
        )
