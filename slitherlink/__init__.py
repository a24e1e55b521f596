"""
Slitherlink puzzle generation engine.

    from slitherlink import generate_puzzle, GeneratorConfig

    puzzle = generate_puzzle(7, 7, GeneratorConfig(min_clues=10), seed=42)
    puzzle.clues                 # None where no clue is shown
    puzzle.solution_edge_states  # 1 = loop edge, 0 = not
"""

from slitherlink.config import GeneratorConfig, LogicSolvedRange
from slitherlink.generators.clues import derive_clues
from slitherlink.generators.loop_generator import generate_random_loop
from slitherlink.generators.puzzle_generator import (
    PuzzleGenerator,
    generate_puzzle,
    generate_puzzle_with_options,
)
from slitherlink.grid import EdgeState, Grid, build_grid
from slitherlink.puzzle import DifficultyMetrics, GenerationMetadata, Puzzle
from slitherlink.solvers.backtracking_solver import SolveResult, solve_slitherlink
from slitherlink.solvers.propagation_solver import PropagationResult, propagate
from slitherlink.solvers.solver_errors import (
    InvalidConfigError,
    LoopGenerationError,
    SlitherlinkError,
)
from slitherlink.validators import check_win_condition, is_single_loop

__version__ = "1.0.0"

__all__ = [
    "DifficultyMetrics",
    "EdgeState",
    "GenerationMetadata",
    "GeneratorConfig",
    "Grid",
    "InvalidConfigError",
    "LogicSolvedRange",
    "LoopGenerationError",
    "PropagationResult",
    "Puzzle",
    "PuzzleGenerator",
    "SlitherlinkError",
    "SolveResult",
    "build_grid",
    "check_win_condition",
    "derive_clues",
    "generate_puzzle",
    "generate_puzzle_with_options",
    "generate_random_loop",
    "is_single_loop",
    "propagate",
    "solve_slitherlink",
]
