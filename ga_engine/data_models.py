"""
Data models for the evolution engine.

Core data structures representing candidates, the shared run context, and
the display/save cadence conditions.
"""

import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple, TYPE_CHECKING

from evoimage.config_loader import ConfigurationError, is_positive_int
from evoimage.image_model import ColorMode, Image, Pixel

if TYPE_CHECKING:
    from .fitness import FitnessStrategy
    from .mutation import MutationStrategy


# Score carried by candidates that have not been evaluated yet
UNSCORED = sys.maxsize


@dataclass
class Candidate:
    """
    A single specimen in the population.

    Attributes:
        image: Pixel buffer of this specimen (mutated in place)
        score: Fitness score against the target, lower is better;
            UNSCORED until the candidate has been evaluated
    """
    image: Image
    score: int = UNSCORED

    @property
    def is_scored(self) -> bool:
        return self.score != UNSCORED

    def copy(self) -> "Candidate":
        """
        Create a deep copy of this candidate.

        Returns:
            New Candidate with its own pixel buffer
        """
        return Candidate(image=self.image.copy(), score=self.score)


def create_blank_population(height: int, width: int, size: int) -> List[Candidate]:
    """
    Build the first generation: white blanks with the UNSCORED sentinel.

    Every candidate owns a separate buffer so that mutating one never
    affects another.
    """
    pixel = Pixel.white()
    return [Candidate(image=Image.blank(height, width, pixel)) for _ in range(size)]


@dataclass(frozen=True)
class RunContext:
    """
    Read-only snapshot shared by every evaluation task of a run.

    The target buffer is frozen on construction, so workers can read it
    concurrently without locking.

    Attributes:
        target: Image being approximated
        color_mode: Whether channels are treated separately or as gray
        mutator: Mutation strategy applied to non-elite candidates
        fitness: Fitness strategy used to score candidates
    """
    target: Image
    color_mode: ColorMode
    mutator: "MutationStrategy"
    fitness: "FitnessStrategy"

    def __post_init__(self):
        self.target.freeze()

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.target.dimensions


@dataclass(frozen=True)
class DisplayCondition:
    """
    Which generations push the elite to the display.

    Use the constructors: all(), every(n) or none().
    """
    mode: str
    interval: Optional[int] = None

    def __post_init__(self):
        if self.mode not in ("all", "every", "none"):
            raise ConfigurationError(f"Unknown display mode: {self.mode}")
        if self.mode == "every" and not is_positive_int(self.interval):
            raise ConfigurationError(
                f"DisplayCondition.every must be a positive integer, got: {self.interval}"
            )

    @classmethod
    def all(cls) -> "DisplayCondition":
        return cls("all")

    @classmethod
    def every(cls, interval: int) -> "DisplayCondition":
        return cls("every", interval)

    @classmethod
    def none(cls) -> "DisplayCondition":
        return cls("none")

    @property
    def enabled(self) -> bool:
        return self.mode != "none"

    def should_fire(self, generation: int) -> bool:
        if self.mode == "all":
            return True
        if self.mode == "every":
            return generation % self.interval == 0
        return False


@dataclass(frozen=True)
class SaveCondition:
    """
    Which generations write the elite to the output directory.

    Use the constructors: all(), each(n) or never().
    """
    mode: str
    interval: Optional[int] = None

    def __post_init__(self):
        if self.mode not in ("all", "each", "never"):
            raise ConfigurationError(f"Unknown save mode: {self.mode}")
        if self.mode == "each" and not is_positive_int(self.interval):
            raise ConfigurationError(
                f"SaveCondition.each must be a positive integer, got: {self.interval}"
            )

    @classmethod
    def all(cls) -> "SaveCondition":
        return cls("all")

    @classmethod
    def each(cls, interval: int) -> "SaveCondition":
        return cls("each", interval)

    @classmethod
    def never(cls) -> "SaveCondition":
        return cls("never")

    @property
    def enabled(self) -> bool:
        return self.mode != "never"

    def should_fire(self, generation: int) -> bool:
        if self.mode == "all":
            return True
        if self.mode == "each":
            return generation % self.interval == 0
        return False


@dataclass
class GenerationReport:
    """Summary of one completed generation"""
    generation: int
    best_score: int
    displayed: bool = False
    saved_path: Optional[str] = None
