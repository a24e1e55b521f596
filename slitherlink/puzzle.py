"""
Puzzle records returned by the generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from slitherlink.grid import Clue, Grid


@dataclass(frozen=True)
class ClueStatistics:
    """Clue distribution of a puzzle, split by interior and border cells."""
    clue_count: int = 0
    zero: int = 0
    one: int = 0
    two: int = 0
    three: int = 0
    non_zero: int = 0
    high: int = 0                 # clues >= 2
    interior_zero: int = 0
    interior_non_zero: int = 0
    interior_high: int = 0
    border_zero: int = 0
    border_non_zero: int = 0
    border_high: int = 0


@dataclass(frozen=True)
class DifficultyMetrics:
    difficulty_visits: int        # node visits of a single-solution probe
    probe_exhausted: bool
    logic_solved_fraction: float  # share of edges decided by propagation alone
    logic_determined_edges: int
    total_edges: int
    logic_iterations: int
    clue_stats: ClueStatistics


@dataclass(frozen=True)
class GenerationMetadata:
    seed: Optional[int]
    attempt: int                  # 1-based index of the returned attempt
    attempts_run: int
    loop_length: int
    solver_steps_used: int
    solver_budget_exhausted: bool
    removals_accepted: int
    removals_rejected: int
    meets_targets: bool
    penalty: float


@dataclass(frozen=True)
class Puzzle:
    grid: Grid
    clues: Tuple[Clue, ...]
    full_clues: Tuple[int, ...]
    solution_edge_states: Tuple[int, ...]
    solution_edges: FrozenSet[int]
    remaining_clue_count: int
    metadata: GenerationMetadata
    difficulty: DifficultyMetrics

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def width(self) -> int:
        return self.grid.width

