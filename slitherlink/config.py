"""
Generator Configuration
=======================
Named options for puzzle generation.

Every field left as ``None`` is derived from the board size by
``GeneratorConfig.resolve``; the resolved copy is validated once and then
used unchanged by every attempt.

Step limits can be overridden from the environment:
    SLITHERLINK_MAX_SOLVER_STEPS        per solver call
    SLITHERLINK_MAX_TOTAL_SOLVER_STEPS  per generation attempt
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Optional, Tuple, Union

from slitherlink.grid import build_grid
from slitherlink.solvers.solver_errors import (
    DEFAULT_SAFE_LIMIT,
    MAX_SEARCH_EDGES,
    InvalidConfigError,
    resolve_step_limit,
)

DEFAULT_MAX_SOLVER_STEPS = 20000
DEFAULT_MAX_TOTAL_SOLVER_STEPS = DEFAULT_SAFE_LIMIT
DEFAULT_STALL_THRESHOLD = 2
DEFAULT_MAX_PUZZLE_RETRIES = 3
DEFAULT_LOGIC_RANGE = (0.25, 0.75)

MAX_SOLVER_STEPS_ENV = "SLITHERLINK_MAX_SOLVER_STEPS"
MAX_TOTAL_SOLVER_STEPS_ENV = "SLITHERLINK_MAX_TOTAL_SOLVER_STEPS"


@dataclass(frozen=True)
class LogicSolvedRange:
    """Accepted band for the share of edges decided by propagation alone."""
    minimum: float = DEFAULT_LOGIC_RANGE[0]
    maximum: float = DEFAULT_LOGIC_RANGE[1]

    @property
    def midpoint(self) -> float:
        return (self.minimum + self.maximum) / 2

    def contains(self, fraction: float) -> bool:
        return self.minimum <= fraction <= self.maximum

    def clamped(self) -> "LogicSolvedRange":
        if self.minimum > self.maximum:
            raise InvalidConfigError(
                f"logic_solved_range min {self.minimum} exceeds max {self.maximum}",
                field="logic_solved_range",
            )
        return LogicSolvedRange(_clamp_ratio(self.minimum), _clamp_ratio(self.maximum))


def _clamp_ratio(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


# camelCase option names used by the presentation layer
_OPTION_ALIASES = {
    "maxRemovalAttempts": "max_removal_attempts",
    "ensureUnique": "ensure_unique",
    "minClues": "min_clues",
    "targetClues": "target_clues",
    "maxSolverSteps": "max_solver_steps",
    "maxTotalSolverSteps": "max_total_solver_steps",
    "stallThreshold": "stall_threshold",
    "maxPuzzleRetries": "max_puzzle_retries",
    "minDifficultyVisits": "min_difficulty_visits",
    "minNonZeroClues": "min_non_zero_clues",
    "minInteriorNonZeroClues": "min_interior_non_zero_clues",
    "minHighClues": "min_high_clues",
    "minInteriorHighClues": "min_interior_high_clues",
    "maxZeroClues": "max_zero_clues",
    "maxBorderZeroClues": "max_border_zero_clues",
    "logicSolvedRange": "logic_solved_range",
}


@dataclass(frozen=True)
class GeneratorConfig:
    max_removal_attempts: Optional[int] = None
    ensure_unique: bool = True
    min_clues: Optional[int] = None
    target_clues: Optional[int] = None
    max_solver_steps: Optional[int] = None
    max_total_solver_steps: Optional[int] = None
    stall_threshold: int = DEFAULT_STALL_THRESHOLD
    max_puzzle_retries: int = DEFAULT_MAX_PUZZLE_RETRIES
    min_difficulty_visits: Optional[int] = None
    min_non_zero_clues: Optional[int] = None
    min_interior_non_zero_clues: Optional[int] = None
    min_high_clues: Optional[int] = None
    min_interior_high_clues: Optional[int] = None
    max_zero_clues: Optional[int] = None
    max_border_zero_clues: Optional[int] = None
    logic_solved_range: LogicSolvedRange = field(default_factory=LogicSolvedRange)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "GeneratorConfig":
        """
        Build a config from an option mapping. Keys may be snake_case field
        names or the camelCase names of the presentation layer;
        ``logicSolvedRange`` may be ``{"min": .., "max": ..}`` or a pair.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidConfigError(f"Unknown generator option: {key}", field=key)
            if name == "logic_solved_range":
                value = _coerce_range(value)
            kwargs[name] = value
        return cls(**kwargs)

    def resolve(self, height: int, width: int) -> "GeneratorConfig":
        """Concrete, validated copy for an ``height`` x ``width`` board."""
        if not (_is_int(height) and _is_int(width)):
            raise InvalidConfigError(
                f"Board size must be integers, got {height!r}x{width!r}", field="size"
            )
        grid = build_grid(height, width)
        if len(grid.edges) > MAX_SEARCH_EDGES:
            raise InvalidConfigError(
                f"{height}x{width} board has {len(grid.edges)} edges, the solver "
                f"searches at most {MAX_SEARCH_EDGES}",
                field="size",
            )
        cells = len(grid.cells)
        edges = len(grid.edges)
        interior = grid.interior_cell_count
        border = grid.border_cell_count

        def pick(value, default):
            return default if value is None else value

        resolved = replace(
            self,
            max_removal_attempts=pick(self.max_removal_attempts, cells),
            min_clues=pick(self.min_clues, math.ceil(0.2 * cells)),
            target_clues=pick(self.target_clues, round(0.45 * cells)),
            max_solver_steps=resolve_step_limit(
                self.max_solver_steps, MAX_SOLVER_STEPS_ENV, DEFAULT_MAX_SOLVER_STEPS),
            max_total_solver_steps=resolve_step_limit(
                self.max_total_solver_steps, MAX_TOTAL_SOLVER_STEPS_ENV,
                DEFAULT_MAX_TOTAL_SOLVER_STEPS),
            min_difficulty_visits=pick(self.min_difficulty_visits, round(1.5 * edges)),
            min_non_zero_clues=pick(self.min_non_zero_clues, round(0.25 * cells)),
            min_interior_non_zero_clues=pick(
                self.min_interior_non_zero_clues, round(0.2 * interior)),
            min_high_clues=pick(self.min_high_clues, round(0.15 * cells)),
            min_interior_high_clues=pick(
                self.min_interior_high_clues, round(0.1 * interior)),
            max_zero_clues=pick(self.max_zero_clues, round(0.15 * cells)),
            max_border_zero_clues=pick(self.max_border_zero_clues, round(0.1 * border)),
            logic_solved_range=_coerce_range(self.logic_solved_range).clamped(),
        )
        resolved._validate()
        return replace(
            resolved,
            min_clues=min(resolved.min_clues, cells),
            target_clues=min(resolved.target_clues, cells),
        )

    def _validate(self) -> None:
        non_negative = (
            "max_removal_attempts", "min_clues", "target_clues",
            "min_difficulty_visits", "min_non_zero_clues",
            "min_interior_non_zero_clues", "min_high_clues",
            "min_interior_high_clues", "max_zero_clues", "max_border_zero_clues",
        )
        for name in non_negative:
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise InvalidConfigError(
                    f"{name} must be a non-negative integer, got {value!r}", field=name
                )
        positive = (
            "max_solver_steps", "max_total_solver_steps",
            "stall_threshold", "max_puzzle_retries",
        )
        for name in positive:
            value = getattr(self, name)
            if not _is_int(value) or value < 1:
                raise InvalidConfigError(
                    f"{name} must be a positive integer, got {value!r}", field=name
                )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_range(value: Union[LogicSolvedRange, Mapping[str, float], Tuple[float, float]]
                  ) -> LogicSolvedRange:
    if isinstance(value, LogicSolvedRange):
        low, high = value.minimum, value.maximum
    elif isinstance(value, Mapping):
        low = value.get("min", DEFAULT_LOGIC_RANGE[0])
        high = value.get("max", DEFAULT_LOGIC_RANGE[1])
    else:
        try:
            low, high = value
        except (TypeError, ValueError):
            raise InvalidConfigError(
                f"logic_solved_range must be a (min, max) pair, got {value!r}",
                field="logic_solved_range",
            ) from None
    try:
        return LogicSolvedRange(float(low), float(high))
    except (TypeError, ValueError):
        raise InvalidConfigError(
            f"logic_solved_range bounds must be numbers, got {low!r} and {high!r}",
            field="logic_solved_range",
        ) from None
