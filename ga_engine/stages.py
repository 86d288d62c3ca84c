"""
Generation stages: parallel evaluation, selection and breeding.

Each stage operates on the population list owned by the generation loop.
Only the evaluation stage uses worker threads; selection and breeding run on
the orchestrating thread.
"""

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import List, Optional, Union

import numpy as np

from .crossover import CrossoverStrategy
from .data_models import UNSCORED, Candidate, RunContext


class WorkerFailure(RuntimeError):
    """Raised when a mutate/score task fails; the run cannot continue"""

    def __init__(self, index: int, cause: BaseException):
        super().__init__(f"Evaluation of candidate {index} failed: {cause!r}")
        self.index = index
        self.cause = cause


def survivor_count(generation_size: int) -> int:
    """
    Number of candidates kept after selection.

    Two parents below a population of 100, one per 50 candidates above.

    Args:
        generation_size: Configured population size (at least 3)

    Returns:
        Survivor count S with 2 <= S < generation_size
    """
    if generation_size < 100:
        return 2
    return generation_size // 50


def evaluate_candidate(candidate: Candidate, context: RunContext, rng: np.random.Generator) -> int:
    """
    Mutate one candidate in place and score it against the target.

    Args:
        candidate: Candidate owned exclusively by the calling task
        context: Shared read-only run context
        rng: Random number generator private to this task

    Returns:
        The new score (also stored on the candidate)
    """
    context.mutator.mutate(candidate.image, context.color_mode, rng)
    candidate.score = context.fitness.score(context.target, candidate.image, context.color_mode)
    return candidate.score


class ParallelEvaluationStage:
    """
    Mutates and scores every non-elite candidate on a fixed-size thread pool.

    The call to run() returns only after every task of the generation has
    finished. Tasks share nothing but the read-only RunContext; each one
    receives its own candidate and its own random generator.
    """

    def __init__(
        self,
        context: RunContext,
        thread_count: int,
        seed: Union[int, np.random.SeedSequence, None] = None
    ):
        if thread_count < 1:
            raise ValueError(f"Thread count must be at least 1, got {thread_count}")

        self.context = context
        self.thread_count = thread_count
        if not isinstance(seed, np.random.SeedSequence):
            seed = np.random.SeedSequence(seed)
        self._seed_sequence = seed
        self._executor: Optional[ThreadPoolExecutor] = None

    def start(self):
        """Create the worker pool"""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.thread_count,
                thread_name_prefix="evaluation-worker",
            )

    def shutdown(self):
        """Stop the worker pool, dropping any tasks that have not started"""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    @property
    def is_running(self) -> bool:
        return self._executor is not None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def run(self, population: List[Candidate]):
        """
        Evaluate the population for one generation.

        The elite at index 0 is never mutated. If it has not been scored yet
        (first generation) it is scored as-is.

        Args:
            population: Current population, modified in place

        Raises:
            WorkerFailure: If any task raises; outstanding tasks are cancelled
        """
        if self._executor is None:
            raise RuntimeError("Evaluation stage has not been started")

        elite = population[0]
        if elite.score == UNSCORED:
            elite.score = self.context.fitness.score(
                self.context.target, elite.image, self.context.color_mode
            )

        # Spawned on the orchestrating thread: one stream per candidate index.
        children = self._seed_sequence.spawn(len(population) - 1)

        futures = {}
        for index, seed in enumerate(children, start=1):
            future = self._executor.submit(
                evaluate_candidate, population[index], self.context, np.random.default_rng(seed)
            )
            futures[future] = index

        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)

        failed = _first_failure(done)
        if failed is not None:
            for future in not_done:
                future.cancel()
            # No worker may still be touching the population once we raise.
            wait(not_done)
            raise WorkerFailure(futures[failed], failed.exception()) from failed.exception()


def _first_failure(futures) -> Optional[Future]:
    for future in futures:
        if not future.cancelled() and future.exception() is not None:
            return future
    return None


class SelectionStage:
    """Sorts candidates by score and keeps the best ones"""

    def __init__(self, generation_size: int):
        self.generation_size = generation_size
        self.survivors = survivor_count(generation_size)

    def run(self, population: List[Candidate]):
        """
        Stable ascending sort by score, then truncate to the survivor count.

        Candidates with equal scores keep their relative order, so the
        current elite stays ahead of any newcomer that merely ties it.
        """
        population.sort(key=lambda candidate: candidate.score)
        del population[self.survivors:]


class BreedingStage:
    """Refills the population from the survivors through crossover"""

    def __init__(self, crossover: CrossoverStrategy, generation_size: int):
        self.crossover = crossover
        self.generation_size = generation_size

    def select_two_parents(self, survivors: List[Candidate], rng: np.random.Generator):
        """
        Select two distinct survivors uniformly at random.

        Draws are independent, so the same survivor can appear in many
        pairs across one breeding stage.

        Raises:
            ValueError: If fewer than 2 survivors are available
        """
        if len(survivors) < 2:
            raise ValueError(f"Need at least 2 parents for crossover, got {len(survivors)}")

        idx_a, idx_b = rng.choice(len(survivors), size=2, replace=False)
        return survivors[idx_a], survivors[idx_b]

    def run(self, population: List[Candidate], rng: np.random.Generator) -> int:
        """
        Append bred children until the population is back to full size.

        Args:
            population: Survivors in positions [0, S); extended in place
            rng: Random number generator

        Returns:
            Number of children bred
        """
        survivors = list(population)
        parent_images = {id(candidate.image) for candidate in survivors}

        bred = 0
        while len(population) < self.generation_size:
            parent_a, parent_b = self.select_two_parents(survivors, rng)
            child = self.crossover.breed(parent_a.image, parent_b.image, rng)

            if id(child) in parent_images:
                child = child.copy()

            population.append(Candidate(image=child, score=UNSCORED))
            bred += 1

        return bred
