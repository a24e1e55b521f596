"""
Puzzle Generator
================
Loop -> full clues -> clue removal under a uniqueness check, tuned toward
difficulty targets.

One attempt:
  1. Removal passes: drop clues (low values first) while the solver still
     finds exactly one solution within budget.
  2. Toughening: keep removing while a single-solution probe is too cheap.
  3. Logic ceiling: keep removing while propagation alone decides too much.
  4. Metrics: clue statistics, probe visits and propagation fraction.

The outer loop runs several attempts, returns the first that meets every
target and otherwise the one with the lowest penalty.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import List, Optional

from slitherlink.config import GeneratorConfig
from slitherlink.generators.clues import (
    clue_statistics,
    count_clues,
    derive_clues,
    removal_order,
)
from slitherlink.generators.loop_generator import generate_random_loop
from slitherlink.grid import Clue, EdgeState, Grid, build_grid
from slitherlink.puzzle import (
    ClueStatistics,
    DifficultyMetrics,
    GenerationMetadata,
    Puzzle,
)
from slitherlink.solvers.backtracking_solver import SolveResult, solve_slitherlink
from slitherlink.solvers.propagation_solver import propagate

logger = logging.getLogger(__name__)

ATTEMPTS_PER_RETRY = 3
LOGIC_CEILING_PASSES = 3

# Penalty weights used by score_candidate
W_LOGIC_OUTSIDE = 100.0
W_LOGIC_MIDPOINT = 10.0
W_NON_ZERO = 3.0
W_INTERIOR_NON_ZERO = 2.0
W_HIGH = 3.0
W_INTERIOR_HIGH = 2.0
W_ZERO = 2.0
W_BORDER_ZERO = 2.0
W_EXCESS_CLUES = 1.0


@dataclass
class SolverBudget:
    """Node visits shared by every solver call of one attempt."""
    total: int
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.used)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def allowance(self, per_call: int) -> int:
        return min(per_call, self.remaining)

    def consume(self, visits: int) -> None:
        self.used += visits


@dataclass
class AttemptResult:
    puzzle: Puzzle
    penalty: float
    meets_targets: bool


def score_candidate(config: GeneratorConfig, clue_count: int,
                    metrics: DifficultyMetrics) -> float:
    """Weighted distance of a candidate from the difficulty targets (lower is better)."""
    stats = metrics.clue_stats
    logic = config.logic_solved_range
    fraction = metrics.logic_solved_fraction
    penalty = 0.0

    if fraction < logic.minimum:
        penalty += (logic.minimum - fraction) * W_LOGIC_OUTSIDE
    elif fraction > logic.maximum:
        penalty += (fraction - logic.maximum) * W_LOGIC_OUTSIDE
    penalty += abs(fraction - logic.midpoint) * W_LOGIC_MIDPOINT

    penalty += max(0, config.min_non_zero_clues - stats.non_zero) * W_NON_ZERO
    penalty += max(0, config.min_interior_non_zero_clues - stats.interior_non_zero) * W_INTERIOR_NON_ZERO
    penalty += max(0, config.min_high_clues - stats.high) * W_HIGH
    penalty += max(0, config.min_interior_high_clues - stats.interior_high) * W_INTERIOR_HIGH
    penalty += max(0, stats.zero - config.max_zero_clues) * W_ZERO
    penalty += max(0, stats.border_zero - config.max_border_zero_clues) * W_BORDER_ZERO
    penalty += max(0, clue_count - config.target_clues) * W_EXCESS_CLUES
    return penalty


def meets_targets(config: GeneratorConfig, clue_count: int,
                  metrics: DifficultyMetrics) -> bool:
    stats: ClueStatistics = metrics.clue_stats
    return (
        clue_count <= config.target_clues
        and metrics.difficulty_visits >= config.min_difficulty_visits
        and config.logic_solved_range.contains(metrics.logic_solved_fraction)
        and stats.non_zero >= config.min_non_zero_clues
        and stats.interior_non_zero >= config.min_interior_non_zero_clues
        and stats.high >= config.min_high_clues
        and stats.interior_high >= config.min_interior_high_clues
        and stats.zero <= config.max_zero_clues
        and stats.border_zero <= config.max_border_zero_clues
    )


class PuzzleGenerator:
    """
    Generates one Slitherlink puzzle for a board size.

    All randomness comes from ``rng``, so a fixed seed replays the same
    puzzle.
    """

    def __init__(self, height: int, width: int,
                 config: Optional[GeneratorConfig] = None,
                 rng: Optional[random.Random] = None,
                 seed: Optional[int] = None):
        self.config = (config or GeneratorConfig()).resolve(height, width)
        self.height = height
        self.width = width
        self.seed = seed
        self.rng = rng or random.Random(seed)

    def generate(self) -> Puzzle:
        cfg = self.config
        max_attempts = ATTEMPTS_PER_RETRY * cfg.max_puzzle_retries
        best: Optional[AttemptResult] = None

        for attempt in range(1, max_attempts + 1):
            result = self.run_attempt(attempt)
            logger.debug(
                "Attempt %d/%d: clues=%d penalty=%.2f meets_targets=%s",
                attempt, max_attempts, result.puzzle.remaining_clue_count,
                result.penalty, result.meets_targets,
            )
            if best is None or result.penalty < best.penalty:
                best = result
            if result.meets_targets or not cfg.ensure_unique:
                return self._finish(result, attempt)

        logger.warning(
            "No attempt met all difficulty targets on %dx%d, returning best candidate "
            "(attempt %d, penalty %.2f)",
            self.height, self.width, best.puzzle.metadata.attempt, best.penalty,
        )
        return self._finish(best, max_attempts)

    def _finish(self, result: AttemptResult, attempts_run: int) -> Puzzle:
        puzzle = result.puzzle
        final = replace(puzzle, metadata=replace(puzzle.metadata, attempts_run=attempts_run))
        logger.info(
            "Generated %dx%d puzzle: %d/%d clues, logic %.2f, probe visits %d",
            self.height, self.width, final.remaining_clue_count, len(final.clues),
            final.difficulty.logic_solved_fraction, final.difficulty.difficulty_visits,
        )
        return final

    def run_attempt(self, attempt: int = 1) -> AttemptResult:
        """One full generation attempt with its own grid, loop and solver budget."""
        grid = build_grid(self.height, self.width)
        loop = generate_random_loop(grid, self.rng)
        full_clues = derive_clues(grid, loop)
        tuner = _ClueTuner(grid, full_clues, self.config, self.rng)

        if self.config.ensure_unique:
            tuner.remove_to_target()
            tuner.toughen()
            tuner.lower_logic_ceiling()

        metrics = tuner.measure()
        clue_count = count_clues(tuner.clues)
        penalty = score_candidate(self.config, clue_count, metrics)
        ok = meets_targets(self.config, clue_count, metrics)

        puzzle = Puzzle(
            grid=grid,
            clues=tuple(tuner.clues),
            full_clues=tuple(full_clues),
            solution_edge_states=tuple(
                int(EdgeState.ON) if e.id in loop else int(EdgeState.OFF) for e in grid.edges
            ),
            solution_edges=loop,
            remaining_clue_count=clue_count,
            metadata=GenerationMetadata(
                seed=self.seed,
                attempt=attempt,
                attempts_run=attempt,
                loop_length=len(loop),
                solver_steps_used=tuner.budget.used,
                solver_budget_exhausted=tuner.budget.exhausted,
                removals_accepted=tuner.accepted,
                removals_rejected=tuner.rejected,
                meets_targets=ok,
                penalty=penalty,
            ),
            difficulty=metrics,
        )
        return AttemptResult(puzzle, penalty, ok)


class _ClueTuner:
    """Owns the mutable puzzle clue list of one attempt."""

    def __init__(self, grid: Grid, full_clues: List[int],
                 config: GeneratorConfig, rng: random.Random):
        self.grid = grid
        self.config = config
        self.rng = rng
        self.clues: List[Clue] = list(full_clues)
        self.clue_count = len(full_clues)
        self.budget = SolverBudget(config.max_total_solver_steps)
        self.accepted = 0
        self.rejected = 0

    # ── Removal ────────────────────────────────────────────────

    def try_remove(self, cell_id: int) -> bool:
        """Null one clue, keep the removal only if uniqueness is proven."""
        allowance = self.budget.allowance(self.config.max_solver_steps)
        if allowance <= 0 or self.clues[cell_id] is None:
            return False

        backup = self.clues[cell_id]
        self.clues[cell_id] = None
        result = solve_slitherlink(
            self.grid, self.clues, max_solutions=2,
            max_node_visits=allowance, rng=self.rng,
        )
        self.budget.consume(result.visited)

        # Exhausted means uniqueness unknown: keep the clue
        if result.is_unique:
            self.clue_count -= 1
            self.accepted += 1
            return True
        self.clues[cell_id] = backup
        self.rejected += 1
        return False

    def remove_to_target(self) -> None:
        cfg = self.config
        floor = max(cfg.target_clues, cfg.min_clues)
        attempts = 0
        stalls = 0

        while (self.clue_count > floor
               and attempts < cfg.max_removal_attempts
               and stalls < cfg.stall_threshold
               and not self.budget.exhausted):
            removed = 0
            for cell_id in removal_order(self.grid, self.clues, self.rng):
                if (self.clue_count <= floor
                        or attempts >= cfg.max_removal_attempts
                        or self.budget.exhausted):
                    break
                attempts += 1
                if self.try_remove(cell_id):
                    removed += 1
            if removed == 0:
                stalls += 1
            logger.debug(
                "Removal pass: removed=%d clues=%d attempts=%d budget_left=%d",
                removed, self.clue_count, attempts, self.budget.remaining,
            )

    def _remove_one(self) -> bool:
        for cell_id in removal_order(self.grid, self.clues, self.rng):
            if self.clue_count <= self.config.min_clues or self.budget.exhausted:
                return False
            if self.try_remove(cell_id):
                return True
        return False

    # ── Difficulty phases ──────────────────────────────────────

    def probe(self, charged: bool = True) -> SolveResult:
        """Single-solution search; its visit count is the difficulty proxy."""
        per_call = self.config.max_solver_steps
        allowance = self.budget.allowance(per_call) if charged else per_call
        result = solve_slitherlink(
            self.grid, self.clues, max_solutions=1,
            max_node_visits=max(1, allowance), rng=self.rng,
        )
        if charged:
            self.budget.consume(result.visited)
        return result

    def toughen(self) -> None:
        cfg = self.config
        if self.budget.exhausted:
            return
        visits = self.probe().visited
        while (visits < cfg.min_difficulty_visits
               and self.clue_count > cfg.min_clues
               and not self.budget.exhausted):
            if not self._remove_one():
                break
            if self.budget.exhausted:
                break
            visits = self.probe().visited
        logger.debug("Toughening done: clues=%d probe_visits=%d", self.clue_count, visits)

    def lower_logic_ceiling(self) -> None:
        cfg = self.config
        ceiling = cfg.logic_solved_range.maximum
        fraction = propagate(self.grid, self.clues).solved_fraction
        passes = 0

        while (fraction > ceiling
               and passes < LOGIC_CEILING_PASSES
               and self.clue_count > cfg.min_clues
               and not self.budget.exhausted):
            passes += 1
            removed = 0
            for cell_id in removal_order(self.grid, self.clues, self.rng):
                if self.clue_count <= cfg.min_clues or self.budget.exhausted:
                    break
                if self.try_remove(cell_id):
                    removed += 1
                    fraction = propagate(self.grid, self.clues).solved_fraction
                    if fraction <= ceiling:
                        break
            if removed == 0:
                break
        logger.debug("Logic ceiling done: clues=%d fraction=%.2f passes=%d",
                     self.clue_count, fraction, passes)

    # ── Metrics ────────────────────────────────────────────────

    def measure(self) -> DifficultyMetrics:
        probe = self.probe(charged=False)
        logic = propagate(self.grid, self.clues)
        return DifficultyMetrics(
            difficulty_visits=probe.visited,
            probe_exhausted=probe.exhausted,
            logic_solved_fraction=logic.solved_fraction,
            logic_determined_edges=logic.determined_edges,
            total_edges=logic.total_edges,
            logic_iterations=logic.iterations,
            clue_stats=clue_statistics(self.grid, self.clues),
        )


def generate_puzzle(height: int, width: int,
                    config: Optional[GeneratorConfig] = None,
                    seed: Optional[int] = None,
                    rng: Optional[random.Random] = None) -> Puzzle:
    """
    Generate a puzzle. Raises LoopGenerationError if no loop can be built
    and InvalidConfigError for bad dimensions or options.
    """
    return PuzzleGenerator(height, width, config=config, rng=rng, seed=seed).generate()


def generate_puzzle_with_options(height: int, width: int, options=None,
                                 seed: Optional[int] = None) -> Puzzle:
    """Same as generate_puzzle, options given as a (camelCase) mapping."""
    return generate_puzzle(height, width, GeneratorConfig.from_options(options), seed=seed)
