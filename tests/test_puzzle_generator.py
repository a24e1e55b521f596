import unittest
import random
import sys
import os
from unittest import mock

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slitherlink.config import GeneratorConfig, LogicSolvedRange
from slitherlink.generators.clues import count_clues, derive_clues
from slitherlink.generators.loop_generator import generate_random_loop
from slitherlink.generators.puzzle_generator import (
    LOGIC_CEILING_PASSES,
    PuzzleGenerator,
    SolverBudget,
    generate_puzzle,
    generate_puzzle_with_options,
    meets_targets,
    score_candidate,
    _ClueTuner,
)
from slitherlink.puzzle import ClueStatistics, DifficultyMetrics
from slitherlink.grid import build_grid
from slitherlink.solvers.backtracking_solver import SolveResult, solve_slitherlink
from slitherlink.solvers.solver_errors import InvalidConfigError, LoopGenerationError
from slitherlink.validators import is_single_loop


def _metrics(fraction=0.5, visits=100, **stats):
    base = dict(clue_count=8, zero=0, one=2, two=3, three=3, non_zero=8, high=6,
                interior_non_zero=2, interior_high=2, border_zero=0)
    base.update(stats)
    return DifficultyMetrics(
        difficulty_visits=visits,
        probe_exhausted=False,
        logic_solved_fraction=fraction,
        logic_determined_edges=int(40 * fraction),
        total_edges=40,
        logic_iterations=3,
        clue_stats=ClueStatistics(**base),
    )


class TestGeneratePuzzle(unittest.TestCase):
    def test_without_uniqueness_all_clues_stay(self):
        puzzle = generate_puzzle(4, 4, GeneratorConfig(ensure_unique=False), seed=1)
        self.assertEqual(list(puzzle.clues), list(puzzle.full_clues))
        self.assertEqual(puzzle.remaining_clue_count, 16)
        self.assertEqual(puzzle.metadata.attempts_run, 1)
        self.assertEqual(puzzle.metadata.removals_accepted, 0)

    def test_unique_puzzle_4x4(self):
        config = GeneratorConfig(ensure_unique=True, min_clues=4, max_puzzle_retries=1)
        puzzle = generate_puzzle(4, 4, config, seed=7)

        self.assertGreaterEqual(puzzle.remaining_clue_count, 4)
        self.assertLessEqual(puzzle.remaining_clue_count, 16)
        self.assertEqual(puzzle.remaining_clue_count,
                         sum(1 for c in puzzle.clues if c is not None))

        result = solve_slitherlink(puzzle.grid, puzzle.clues, max_solutions=2)
        self.assertFalse(result.exhausted)
        self.assertEqual(len(result.solutions), 1)
        self.assertEqual(result.solutions[0], list(puzzle.solution_edge_states))

    def test_shown_clues_match_full_clues(self):
        puzzle = generate_puzzle(5, 5, GeneratorConfig(max_puzzle_retries=1), seed=3)
        for shown, full in zip(puzzle.clues, puzzle.full_clues):
            if shown is not None:
                self.assertEqual(shown, full)

    def test_solution_is_the_loop(self):
        puzzle = generate_puzzle(5, 4, GeneratorConfig(max_puzzle_retries=1), seed=2)
        self.assertTrue(is_single_loop(puzzle.grid, puzzle.solution_edge_states))
        on_edges = {eid for eid, s in enumerate(puzzle.solution_edge_states) if s == 1}
        self.assertEqual(on_edges, set(puzzle.solution_edges))
        self.assertEqual(puzzle.metadata.loop_length, len(on_edges))

    def test_same_seed_same_puzzle(self):
        config = GeneratorConfig(max_puzzle_retries=1)
        first = generate_puzzle(4, 4, config, seed=21)
        second = generate_puzzle(4, 4, config, seed=21)
        self.assertEqual(first.clues, second.clues)
        self.assertEqual(first.solution_edge_states, second.solution_edge_states)

    def test_explicit_rng(self):
        puzzle = generate_puzzle(4, 4, GeneratorConfig(max_puzzle_retries=1),
                                 rng=random.Random(5))
        self.assertIsNone(puzzle.metadata.seed)
        self.assertEqual(len(puzzle.solution_edge_states), 40)

    def test_clue_floor_is_respected(self):
        config = GeneratorConfig(min_clues=10, target_clues=10, max_puzzle_retries=1)
        puzzle = generate_puzzle(4, 4, config, seed=4)
        self.assertGreaterEqual(puzzle.remaining_clue_count, 10)

    def test_exhausted_budget_keeps_every_clue(self):
        config = GeneratorConfig(max_total_solver_steps=1, max_puzzle_retries=1)
        puzzle = generate_puzzle(4, 4, config, seed=9)
        self.assertEqual(puzzle.remaining_clue_count, 16)
        self.assertEqual(puzzle.metadata.removals_accepted, 0)
        self.assertTrue(puzzle.metadata.solver_budget_exhausted)

    def test_metrics_are_filled(self):
        puzzle = generate_puzzle(4, 4, GeneratorConfig(max_puzzle_retries=1), seed=11)
        metrics = puzzle.difficulty
        self.assertEqual(metrics.total_edges, 40)
        self.assertTrue(0.0 <= metrics.logic_solved_fraction <= 1.0)
        self.assertGreater(metrics.difficulty_visits, 0)
        self.assertEqual(metrics.clue_stats.clue_count, puzzle.remaining_clue_count)
        self.assertGreaterEqual(puzzle.metadata.attempts_run, puzzle.metadata.attempt)
        self.assertLessEqual(puzzle.metadata.attempts_run, 3)

    def test_camel_case_options(self):
        puzzle = generate_puzzle_with_options(4, 4, {"ensureUnique": False}, seed=1)
        self.assertEqual(puzzle.remaining_clue_count, 16)

    def test_invalid_board(self):
        with self.assertRaises(InvalidConfigError):
            generate_puzzle(0, 4)

    def test_loop_failure_is_fatal(self):
        with mock.patch(
            "slitherlink.generators.puzzle_generator.generate_random_loop",
            side_effect=LoopGenerationError(attempts=20),
        ):
            with self.assertRaises(LoopGenerationError):
                generate_puzzle(4, 4, seed=1)

    def test_returns_first_attempt_meeting_targets(self):
        generator = PuzzleGenerator(4, 4, GeneratorConfig(max_puzzle_retries=2), seed=1)
        calls = []
        real_attempt = generator.run_attempt

        def fake_attempt(attempt=1):
            calls.append(attempt)
            result = real_attempt(attempt)
            result.meets_targets = attempt == 2
            return result

        generator.run_attempt = fake_attempt
        puzzle = generator.generate()
        self.assertEqual(calls, [1, 2])
        self.assertEqual(puzzle.metadata.attempt, 2)
        self.assertEqual(puzzle.metadata.attempts_run, 2)

    def test_best_candidate_when_no_attempt_qualifies(self):
        generator = PuzzleGenerator(4, 4, GeneratorConfig(max_puzzle_retries=1), seed=3)
        penalties = {1: 5.0, 2: 1.0, 3: 9.0}
        real_attempt = generator.run_attempt

        def fake_attempt(attempt=1):
            result = real_attempt(attempt)
            result.meets_targets = False
            result.penalty = penalties[attempt]
            return result

        generator.run_attempt = fake_attempt
        puzzle = generator.generate()
        self.assertEqual(puzzle.metadata.attempt, 2)
        self.assertEqual(puzzle.metadata.attempts_run, 3)


class TestScoring(unittest.TestCase):
    def setUp(self):
        self.config = GeneratorConfig(
            target_clues=8, min_difficulty_visits=50,
            min_non_zero_clues=4, min_interior_non_zero_clues=1,
            min_high_clues=3, min_interior_high_clues=1,
            max_zero_clues=2, max_border_zero_clues=1,
            logic_solved_range=LogicSolvedRange(0.25, 0.75),
        ).resolve(4, 4)

    def test_on_target_candidate(self):
        metrics = _metrics(fraction=0.5)
        self.assertTrue(meets_targets(self.config, 8, metrics))
        self.assertAlmostEqual(score_candidate(self.config, 8, metrics), 0.0)

    def test_midpoint_distance(self):
        metrics = _metrics(fraction=0.7)
        self.assertTrue(meets_targets(self.config, 8, metrics))
        self.assertAlmostEqual(score_candidate(self.config, 8, metrics), 2.0)

    def test_too_easy(self):
        metrics = _metrics(fraction=0.95)
        self.assertFalse(meets_targets(self.config, 8, metrics))
        # 0.20 outside x100 + 0.45 from midpoint x10
        self.assertAlmostEqual(score_candidate(self.config, 8, metrics), 24.5)

    def test_clue_shortfalls_and_excess(self):
        metrics = _metrics(fraction=0.5, non_zero=2, high=1, zero=4, border_zero=3)
        self.assertFalse(meets_targets(self.config, 10, metrics))
        # non_zero 2*3 + high 2*3 + zero 2*2 + border zero 2*2 + clues 2*1
        self.assertAlmostEqual(score_candidate(self.config, 10, metrics), 22.0)

    def test_too_few_visits_fails_targets_only(self):
        metrics = _metrics(fraction=0.5, visits=10)
        self.assertFalse(meets_targets(self.config, 8, metrics))
        self.assertAlmostEqual(score_candidate(self.config, 8, metrics), 0.0)


def _tuner(seed, **overrides):
    grid = build_grid(4, 4)
    rng = random.Random(seed)
    loop = generate_random_loop(grid, rng)
    config = GeneratorConfig(**overrides).resolve(4, 4)
    return _ClueTuner(grid, derive_clues(grid, loop), config, rng), loop


def _fake_removal(tuner, clear=True):
    def remove(cell_id):
        if clear:
            tuner.clues[cell_id] = None
            tuner.clue_count -= 1
        return True
    return remove


class TestClueTuner(unittest.TestCase):
    def test_rejected_removal_restores_clues(self):
        tuner, _ = _tuner(0)
        kept = 5
        value = tuner.clues[kept]
        tuner.clues = [None] * 16
        tuner.clues[kept] = value
        tuner.clue_count = 1
        before = list(tuner.clues)

        # An empty 4x4 board has many loops
        self.assertFalse(tuner.try_remove(kept))
        self.assertEqual(tuner.clues, before)
        self.assertEqual(tuner.clue_count, 1)
        self.assertEqual((tuner.accepted, tuner.rejected), (0, 1))
        self.assertGreater(tuner.budget.used, 0)

    def test_try_remove_skips_blank_cells_and_spent_budget(self):
        tuner, _ = _tuner(1)
        tuner.clues[3] = None
        self.assertFalse(tuner.try_remove(3))
        value = tuner.clues[4]
        tuner.budget.used = tuner.budget.total
        self.assertFalse(tuner.try_remove(4))
        self.assertEqual(tuner.clues[4], value)
        self.assertEqual((tuner.accepted, tuner.rejected), (0, 0))

    def test_phases_keep_the_puzzle_unique(self):
        for seed in range(3):
            tuner, loop = _tuner(seed, min_clues=4)
            tuner.remove_to_target()
            tuner.toughen()
            tuner.lower_logic_ceiling()

            self.assertEqual(tuner.clue_count, count_clues(tuner.clues))
            self.assertGreaterEqual(tuner.clue_count, 4)
            result = solve_slitherlink(tuner.grid, tuner.clues, max_solutions=2)
            self.assertTrue(result.is_unique)
            expected = [1 if e.id in loop else 0 for e in tuner.grid.edges]
            self.assertEqual(result.solutions[0], expected)

    def test_toughen_removes_until_probe_is_hard_enough(self):
        tuner, _ = _tuner(2, min_difficulty_visits=50)
        probes = [SolveResult(visited=v) for v in (10, 20, 30, 100)]
        with mock.patch.object(tuner, "try_remove", side_effect=_fake_removal(tuner)), \
                mock.patch.object(tuner, "probe", side_effect=probes) as probe:
            tuner.toughen()
        self.assertEqual(probe.call_count, 4)
        self.assertEqual(tuner.clue_count, 13)

    def test_toughen_stops_at_min_clues(self):
        tuner, _ = _tuner(2, min_clues=14, min_difficulty_visits=50)
        with mock.patch.object(tuner, "try_remove", side_effect=_fake_removal(tuner)) as remove, \
                mock.patch.object(tuner, "probe", return_value=SolveResult(visited=10)):
            tuner.toughen()
        self.assertEqual(remove.call_count, 2)
        self.assertEqual(tuner.clue_count, 14)

    def test_toughen_stops_when_nothing_can_go(self):
        tuner, _ = _tuner(3, min_difficulty_visits=10 ** 6)
        before = list(tuner.clues)
        with mock.patch.object(tuner, "try_remove", return_value=False) as remove:
            tuner.toughen()
        # one full sweep of the removal order, then give up
        self.assertEqual(remove.call_count, 16)
        self.assertEqual(tuner.clues, before)

    def test_toughen_skipped_without_budget(self):
        tuner, _ = _tuner(3, min_difficulty_visits=10 ** 6)
        tuner.budget.used = tuner.budget.total
        with mock.patch.object(tuner, "probe") as probe:
            tuner.toughen()
        probe.assert_not_called()
        self.assertEqual(tuner.clue_count, 16)

    def test_logic_ceiling_stops_once_below_maximum(self):
        tuner, _ = _tuner(4)
        fractions = [mock.Mock(solved_fraction=f) for f in (0.9, 0.85, 0.7)]
        with mock.patch("slitherlink.generators.puzzle_generator.propagate",
                        side_effect=fractions), \
                mock.patch.object(tuner, "try_remove", side_effect=_fake_removal(tuner)) as remove:
            tuner.lower_logic_ceiling()
        self.assertEqual(remove.call_count, 2)
        self.assertEqual(tuner.clue_count, 14)

    def test_logic_ceiling_pass_limit(self):
        tuner, _ = _tuner(4)
        with mock.patch("slitherlink.generators.puzzle_generator.propagate",
                        return_value=mock.Mock(solved_fraction=0.95)), \
                mock.patch.object(tuner, "try_remove",
                                  side_effect=_fake_removal(tuner, clear=False)) as remove:
            tuner.lower_logic_ceiling()
        self.assertEqual(remove.call_count, LOGIC_CEILING_PASSES * 16)

    def test_logic_ceiling_gives_up_without_removals(self):
        tuner, _ = _tuner(5)
        with mock.patch("slitherlink.generators.puzzle_generator.propagate",
                        return_value=mock.Mock(solved_fraction=0.95)), \
                mock.patch.object(tuner, "try_remove", return_value=False) as remove:
            tuner.lower_logic_ceiling()
        self.assertEqual(remove.call_count, 16)

    def test_logic_ceiling_skipped_when_low_enough_or_out_of_budget(self):
        tuner, _ = _tuner(6)
        with mock.patch("slitherlink.generators.puzzle_generator.propagate",
                        return_value=mock.Mock(solved_fraction=0.5)), \
                mock.patch.object(tuner, "try_remove") as remove:
            tuner.lower_logic_ceiling()
        remove.assert_not_called()

        tuner.budget.used = tuner.budget.total
        with mock.patch("slitherlink.generators.puzzle_generator.propagate",
                        return_value=mock.Mock(solved_fraction=0.95)), \
                mock.patch.object(tuner, "try_remove") as remove:
            tuner.lower_logic_ceiling()
        remove.assert_not_called()


class TestSolverBudget(unittest.TestCase):
    def test_allowance_and_consumption(self):
        budget = SolverBudget(total=100)
        self.assertEqual(budget.allowance(30), 30)
        budget.consume(80)
        self.assertEqual(budget.remaining, 20)
        self.assertEqual(budget.allowance(30), 20)
        budget.consume(25)
        self.assertEqual(budget.remaining, 0)
        self.assertTrue(budget.exhausted)


if __name__ == '__main__':
    unittest.main()
