"""
Tests for the generation loop and the output gate.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

import numpy as np

from evoimage.codec import ImageCodec
from evoimage.config_loader import ConfigurationError
from evoimage.image_model import ColorMode, Image
from ga_engine.crossover import EqualHalvesCrossover, LeftOrRightCloneCrossover, UniformCrossover
from ga_engine.data_models import UNSCORED, DisplayCondition, RunContext, SaveCondition
from ga_engine.fitness import AbsoluteDistance, SquareDistance
from ga_engine.io_utils import ImageWriter, generate_snapshot_path
from ga_engine.mutation import CircleMutator, MutationStrategy, RectangleMutator
from ga_engine.orchestration import GenerationLoop, LoopState
from ga_engine.output_gate import OutputGate
from ga_engine.stages import WorkerFailure


class FakeDisplay:
    """Display sink recording every show() call"""

    def __init__(self):
        self.shown = []

    def show(self, handle, title, image):
        self.shown.append((title, image.copy()))


class BrokenMutator(MutationStrategy):
    """Raises on every call"""

    name = "broken"

    def shape_mask(self, height, width, rng):
        raise RuntimeError("shape generation failed")


def checkerboard(height, width):
    array = np.zeros((height, width, 3), dtype=np.uint8)
    array[::2, ::2] = (255, 0, 0)
    array[1::2, 1::2] = (0, 0, 255)
    return Image.from_array(array)


def make_loop(target=None, size=10, threads=2, crossover=None, gate=None,
              cancel_check=None, seed=0, mode=ColorMode.RGB, mutator=None, fitness=None):
    context = RunContext(
        target=target if target is not None else checkerboard(6, 6),
        color_mode=mode,
        mutator=mutator if mutator is not None else RectangleMutator(),
        fitness=fitness if fitness is not None else SquareDistance(),
    )
    return GenerationLoop(
        context=context,
        crossover=crossover if crossover is not None else EqualHalvesCrossover(),
        generation_size=size,
        thread_count=threads,
        output_gate=gate,
        cancel_check=cancel_check,
        random_seed=seed,
        verbose=False,
    )


class TestGenerationLoop(unittest.TestCase):
    """Test the evaluate, select, breed cycle."""

    def test_population_size_is_constant(self):
        loop = make_loop(size=12)
        loop.initialize()
        try:
            self.assertEqual(len(loop.population), 12)
            for _ in range(5):
                loop.run_single_generation()
                self.assertEqual(len(loop.population), 12)
        finally:
            loop.shutdown()

    def test_best_score_never_increases(self):
        loop = make_loop(size=8, crossover=UniformCrossover())
        loop.initialize()
        scores = []
        try:
            for _ in range(60):
                scores.append(loop.run_single_generation().best_score)
        finally:
            loop.shutdown()

        for previous, current in zip(scores, scores[1:]):
            self.assertLessEqual(current, previous)
        self.assertLess(scores[-1], scores[0])

    def test_best_score_never_increases_grayscale_absolute(self):
        loop = make_loop(size=6, mode=ColorMode.GRAYSCALE, mutator=CircleMutator(),
                         fitness=AbsoluteDistance())
        loop.initialize()
        scores = []
        try:
            for _ in range(40):
                scores.append(loop.run_single_generation().best_score)
        finally:
            loop.shutdown()

        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_white_target_keeps_zero_score(self):
        # The white blank elite already matches a white target
        loop = make_loop(target=Image.blank(2, 2), size=3, threads=1)
        completed = loop.run(max_generations=5)

        self.assertEqual(completed, 5)
        self.assertEqual(loop.elite.score, 0)
        self.assertEqual(loop.elite.image, Image.blank(2, 2))

    def test_size_three_keeps_two_and_breeds_one(self):
        loop = make_loop(size=3, threads=1, crossover=LeftOrRightCloneCrossover())
        loop.initialize()
        try:
            loop.run_single_generation()
            self.assertEqual(loop.survivor_count, 2)
            self.assertEqual(len(loop.population), 3)
            self.assertTrue(loop.population[0].is_scored)
            self.assertTrue(loop.population[1].is_scored)
            self.assertEqual(loop.population[2].score, UNSCORED)
        finally:
            loop.shutdown()

    def test_generation_counter_and_report(self):
        loop = make_loop(size=4)
        loop.initialize()
        try:
            report = loop.run_single_generation()
            self.assertEqual(report.generation, 1)
            self.assertEqual(report.best_score, loop.elite.score)
            self.assertFalse(report.displayed)
            self.assertIsNone(report.saved_path)
        finally:
            loop.shutdown()

    def test_run_stops_at_max_generations(self):
        loop = make_loop(size=4)
        self.assertEqual(loop.run(max_generations=7), 7)
        self.assertEqual(loop.state, LoopState.EXITING)

    def test_cancellation_is_checked_between_ticks(self):
        polls = []

        def cancel_after_three():
            polls.append(True)
            return len(polls) > 3

        loop = make_loop(size=4, cancel_check=cancel_after_three)
        completed = loop.run()

        self.assertEqual(completed, 3)
        self.assertEqual(loop.state, LoopState.EXITING)

    def test_cancelled_before_first_tick(self):
        loop = make_loop(size=4, cancel_check=lambda: True)
        self.assertEqual(loop.run(), 0)
        self.assertEqual(len(loop.population), 4)

    def test_tick_after_exit_is_rejected(self):
        loop = make_loop(size=4)
        loop.run(max_generations=1)
        with self.assertRaises(RuntimeError):
            loop.run_single_generation()

    def test_worker_failure_stops_the_loop(self):
        loop = make_loop(size=4, mutator=BrokenMutator())
        with self.assertRaises(WorkerFailure) as ctx:
            loop.run(max_generations=3)

        self.assertIsInstance(ctx.exception.cause, RuntimeError)
        self.assertEqual(loop.generation, 0)
        self.assertEqual(loop.state, LoopState.EXITING)
        self.assertFalse(loop.evaluation.is_running)

    def test_same_seed_same_run(self):
        results = []
        for threads in (1, 3):
            loop = make_loop(size=8, threads=threads, seed=11)
            loop.run(max_generations=20)
            results.append((loop.elite.score, loop.elite.image))

        self.assertEqual(results[0][0], results[1][0])
        self.assertEqual(results[0][1], results[1][1])

    def test_generation_size_below_three(self):
        with self.assertRaises(ConfigurationError):
            make_loop(size=2)

    def test_thread_count_below_one(self):
        with self.assertRaises(ConfigurationError):
            make_loop(threads=0)


class TestOutputConditions(unittest.TestCase):
    """Test display and save cadences."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_display_every_fifty(self):
        display = FakeDisplay()
        gate = OutputGate(display_condition=DisplayCondition.every(50), display=display)
        loop = make_loop(target=checkerboard(3, 3), size=4, gate=gate)
        loop.run(max_generations=150)

        titles = [title for title, _ in display.shown]
        self.assertEqual(len(titles), 3)
        self.assertTrue(titles[0].startswith("Generation 50 "))
        self.assertTrue(titles[1].startswith("Generation 100 "))
        self.assertTrue(titles[2].startswith("Generation 150 "))

    def test_display_all(self):
        display = FakeDisplay()
        gate = OutputGate(display_condition=DisplayCondition.all(), display=display)
        loop = make_loop(size=4, gate=gate)
        loop.run(max_generations=5)

        self.assertEqual(len(display.shown), 5)
        self.assertEqual(display.shown[-1][1], loop.elite.image)

    def test_display_none(self):
        self.assertFalse(DisplayCondition.none().should_fire(50))

    def test_save_each(self):
        writer = ImageWriter(self.temp_path, filename_prefix="run_")
        gate = OutputGate(save_condition=SaveCondition.each(2), writer=writer)
        loop = make_loop(size=4, gate=gate)
        loop.run(max_generations=5)

        saved = sorted(p.name for p in self.temp_path.iterdir())
        self.assertEqual(saved, ["run_000002.png", "run_000004.png"])

    def test_saved_image_is_the_elite(self):
        writer = ImageWriter(self.temp_path)
        gate = OutputGate(save_condition=SaveCondition.all(), writer=writer)
        loop = make_loop(size=4, gate=gate)
        loop.run(max_generations=3)

        self.assertEqual(len(list(self.temp_path.iterdir())), 3)
        saved = ImageCodec().load(self.temp_path / "000003.png")
        self.assertEqual(saved, loop.elite.image)

    def test_display_and_save_in_same_generation(self):
        display = FakeDisplay()
        gate = OutputGate(
            display_condition=DisplayCondition.every(2),
            save_condition=SaveCondition.each(2),
            display=display,
            writer=ImageWriter(self.temp_path),
        )
        displayed, saved_path = gate.process(4, Image.blank(2, 2), 0)

        self.assertTrue(displayed)
        self.assertEqual(saved_path, self.temp_path / "000004.png")

    def test_non_positive_intervals_are_rejected(self):
        with self.assertRaises(ConfigurationError):
            SaveCondition.each(0)
        with self.assertRaises(ConfigurationError):
            DisplayCondition.every(0)
        with self.assertRaises(ConfigurationError):
            DisplayCondition.every(-5)
        with self.assertRaises(ConfigurationError):
            DisplayCondition.every(True)
        with self.assertRaises(ConfigurationError):
            SaveCondition.each(True)
        with self.assertRaises(ConfigurationError):
            SaveCondition.each(2.0)

    def test_enabled_condition_needs_a_sink(self):
        with self.assertRaises(ValueError):
            OutputGate(display_condition=DisplayCondition.all())
        with self.assertRaises(ValueError):
            OutputGate(save_condition=SaveCondition.all())

    def test_writer_requires_existing_directory(self):
        with self.assertRaises(ConfigurationError):
            ImageWriter(self.temp_path / "missing")

    def test_snapshot_path(self):
        path = generate_snapshot_path("out", 150, "lenna_")
        self.assertEqual(path, Path("out") / "lenna_000150.png")


if __name__ == '__main__':
    unittest.main()
