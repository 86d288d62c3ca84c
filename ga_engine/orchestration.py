"""
Orchestration module for the evolution engine.

Implements the generation loop and the configuration-driven run workflow.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from evoimage.config_loader import ConfigurationError, MIN_GENERATION_SIZE, resolve_thread_count
from evoimage.image_model import ColorMode, Image

from .crossover import CrossoverStrategy, create_crossover
from .data_models import (
    Candidate,
    DisplayCondition,
    GenerationReport,
    RunContext,
    SaveCondition,
    create_blank_population,
)
from .fitness import create_fitness
from .io_utils import ImageWriter, load_target_image
from .mutation import create_mutator
from .output_gate import OutputGate
from .stages import BreedingStage, ParallelEvaluationStage, SelectionStage


class LoopState(Enum):
    """Lifecycle of a generation loop"""
    INITIALIZING = "initializing"
    RUNNING = "running"
    EXITING = "exiting"


class GenerationLoop:
    """
    Drives evaluate → select → breed → output, one generation per tick.

    The loop owns the population and the generation counter. Cancellation is
    polled once per tick, before the tick starts, so a tick in progress
    always completes.

    Attributes:
        context: Shared read-only run context
        generation_size: Number of candidates per generation
        population: Current population (index 0 is the elite between ticks)
        generation: Number of completed generations
        state: Current LoopState
    """

    def __init__(
        self,
        context: RunContext,
        crossover: CrossoverStrategy,
        generation_size: int,
        thread_count: int = 1,
        output_gate: Optional[OutputGate] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
        random_seed: Optional[int] = None,
        verbose: bool = True
    ):
        if generation_size < MIN_GENERATION_SIZE:
            raise ConfigurationError(
                f"Generation size cannot be smaller than {MIN_GENERATION_SIZE}, got: {generation_size}"
            )
        if thread_count < 1:
            raise ConfigurationError(f"Thread count must be at least 1, got: {thread_count}")

        self.context = context
        self.generation_size = generation_size
        self.output_gate = output_gate or OutputGate()
        self.cancel_check = cancel_check
        self.verbose = verbose

        # Independent streams for the workers and for breeding
        evaluation_seed, breeding_seed = np.random.SeedSequence(random_seed).spawn(2)

        self.evaluation = ParallelEvaluationStage(context, thread_count, seed=evaluation_seed)
        self.selection = SelectionStage(generation_size)
        self.breeding = BreedingStage(crossover, generation_size)
        self.rng = np.random.default_rng(breeding_seed)

        self.population: List[Candidate] = []
        self.saved_paths: List[Path] = []
        self.generation = 0
        self.state = LoopState.INITIALIZING

    @property
    def survivor_count(self) -> int:
        return self.selection.survivors

    @property
    def elite(self) -> Candidate:
        return self.population[0]

    def initialize(self):
        """Build the first population and start the worker pool"""
        height, width = self.context.dimensions
        self.population = create_blank_population(height, width, self.generation_size)
        self.evaluation.start()
        self.state = LoopState.RUNNING

    def run_single_generation(self) -> GenerationReport:
        """
        Run one tick.

        Returns:
            GenerationReport for the completed generation

        Raises:
            WorkerFailure: If an evaluation task fails
            EncodeError: If the save sink cannot write the elite
        """
        if self.state != LoopState.RUNNING:
            raise RuntimeError(f"Generation loop is not running (state: {self.state.value})")

        self.evaluation.run(self.population)
        self.selection.run(self.population)
        self.breeding.run(self.population, self.rng)

        self.generation += 1
        elite = self.elite

        if self.verbose:
            print(f"Current generation: {self.generation} ({elite.score})")

        displayed, saved_path = self.output_gate.process(self.generation, elite.image, elite.score)
        if saved_path is not None:
            self.saved_paths.append(saved_path)

        return GenerationReport(
            generation=self.generation,
            best_score=elite.score,
            displayed=displayed,
            saved_path=str(saved_path) if saved_path else None,
        )

    def shutdown(self):
        """Stop the worker pool; the loop cannot run any further ticks"""
        self.state = LoopState.EXITING
        self.evaluation.shutdown()

    def cancellation_requested(self) -> bool:
        return self.cancel_check is not None and self.cancel_check()

    def run(self, max_generations: Optional[int] = None) -> int:
        """
        Run until cancelled or until max_generations have completed.

        Without a cancel check and without a limit the loop only stops when
        the process is interrupted.

        Args:
            max_generations: Optional limit on the generation counter

        Returns:
            Number of completed generations
        """
        if self.state == LoopState.INITIALIZING:
            self.initialize()

        try:
            while self.state == LoopState.RUNNING:
                if self.cancellation_requested():
                    break
                if max_generations is not None and self.generation >= max_generations:
                    break
                self.run_single_generation()
        finally:
            self.shutdown()

        return self.generation


def build_display_condition(display_config: Dict[str, Any]) -> DisplayCondition:
    mode = display_config.get('mode', 'none')
    if mode == 'every':
        return DisplayCondition.every(display_config.get('every'))
    return DisplayCondition(mode)


def build_save_condition(output_config: Dict[str, Any]) -> SaveCondition:
    mode = output_config.get('save', 'never')
    if mode == 'each':
        return SaveCondition.each(output_config.get('each'))
    return SaveCondition(mode)


def build_generation_loop(
    config: Dict[str, Any],
    target: Image,
    display: Any = None,
    display_handle: Any = None
) -> GenerationLoop:
    """
    Construct a generation loop from a validated run configuration.

    Args:
        config: Run configuration (already merged with defaults and validated)
        target: Target image
        display: Display sink, required when the display condition is enabled
        display_handle: Handle returned by display.open()

    Returns:
        GenerationLoop ready to run

    Raises:
        ConfigurationError: If the configuration cannot be turned into an engine
    """
    strategies = config['strategies']
    generation = config['generation']
    output = config['output']

    try:
        mutator = create_mutator(strategies['mutator'])
        fitness = create_fitness(strategies['fitness'])
        crossover = create_crossover(strategies['crossover'])
        color_mode = ColorMode(str(config['color_mode']).lower())
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    display_condition = build_display_condition(config['display'])
    save_condition = build_save_condition(output)

    writer = None
    if save_condition.enabled:
        writer = ImageWriter(output['directory'], output.get('filename_prefix') or "")

    cancel_check = None
    if display_condition.enabled:
        cancel_check = lambda: display.poll_cancelled(display_handle)

    gate = OutputGate(
        display_condition=display_condition,
        save_condition=save_condition,
        display=display if display_condition.enabled else None,
        display_handle=display_handle,
        writer=writer,
    )

    context = RunContext(
        target=target,
        color_mode=color_mode,
        mutator=mutator,
        fitness=fitness,
    )

    return GenerationLoop(
        context=context,
        crossover=crossover,
        generation_size=generation['size'],
        thread_count=resolve_thread_count(generation['threads']),
        output_gate=gate,
        cancel_check=cancel_check,
        random_seed=config.get('random_seed'),
        verbose=config.get('verbose', True),
    )


def run_evolution(config: Dict[str, Any], display: Any = None) -> GenerationLoop:
    """
    Run an evolution from a validated run configuration.

    Args:
        config: Run configuration dict (merged with defaults and validated)
        display: Display sink to use when the display is enabled
            (default: a matplotlib window)

    Algorithm:
        1. Load the target image
        2. Open the display window (if any display cadence is configured)
        3. Build strategies, run context, output gate and generation loop
        4. Run until the window is closed, max_generations is reached, or
           the process is interrupted
        5. Close the window and print summary report

    Returns:
        The finished GenerationLoop
    """
    print("=" * 70)
    print("EVOLUTION RUN")
    print("=" * 70)

    image_path = config['image']
    print(f"Loading target image from: {image_path}")
    target = load_target_image(image_path)
    print(f"Dimensions: h: {target.height}, w: {target.width}")
    print(f"Pixels #: {len(target)}")

    strategies = config['strategies']
    generation = config['generation']
    print(f"Mutator: {strategies['mutator']}, fitness: {strategies['fitness']}, "
          f"crossover: {strategies['crossover']}")
    print(f"Generation size: {generation['size']}, threads: {resolve_thread_count(generation['threads'])}")

    seed = config.get('random_seed')
    print(f"Random seed: {seed if seed is not None else 'random'}")

    output = config['output']
    display_handle = None
    try:
        if config['display'].get('mode', 'none') != 'none':
            if display is None:
                from evoimage.display import MatplotlibDisplay
                display = MatplotlibDisplay()
            display_handle = display.open(target.dimensions)

        loop = build_generation_loop(config, target, display, display_handle)
        print(f"Survivors per generation: {loop.survivor_count}")

        if output.get('save', 'never') != 'never':
            print(f"Output directory: {Path(output['directory'])}")
        print()

        completed = loop.run(max_generations=generation.get('max_generations'))
    finally:
        if display_handle is not None:
            display.close(display_handle)

    # Print summary
    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Generations: {completed}")
    if loop.population:
        print(f"Best score: {loop.elite.score}")
    if loop.saved_paths:
        print(f"Files created: {len(loop.saved_paths)}")

    return loop
