"""
Evolution engine for image approximation

This package evolves a population of candidate images toward a target
image: each generation mutates and scores every candidate except the elite,
keeps the best few and refills the population through crossover.

Key Features:
- Elitism (the best image is never mutated, scores never regress)
- Parallel mutate/score on a fixed-size thread pool
- Pluggable mutation, fitness and crossover strategies
- Display and save cadences for the best image

Modules:
- data_models: Candidate, RunContext, display/save conditions
- mutation: Shape mutators (rectangle, triangle, circle)
- fitness: Distance functions (square, absolute)
- crossover: Breeding functions (left-or-right, halves, average, uniform)
- stages: Parallel evaluation, selection and breeding stages
- output_gate: Pushes the elite to the display and save sinks
- io_utils: Target loading and snapshot writing
- orchestration: Generation loop and configuration-driven runs
- cli: Run configuration loading, validation and dispatch
"""

__version__ = "1.0.0"
__author__ = "Franklin Team"

from .data_models import Candidate, DisplayCondition, RunContext, SaveCondition
from .orchestration import GenerationLoop, LoopState
from .stages import WorkerFailure

__all__ = [
    "Candidate",
    "DisplayCondition",
    "GenerationLoop",
    "LoopState",
    "RunContext",
    "SaveCondition",
    "WorkerFailure",
]
