"""
Solver errors and limits.
"""

from __future__ import annotations

import os
from typing import Optional

DEFAULT_SAFE_LIMIT = 200000
# The backtracking search recurses once per edge; keep well under the
# interpreter recursion limit (1000 by default). 20x20 is the largest square board.
MAX_SEARCH_EDGES = 900
LOOP_GENERATION_MESSAGE = "Failed to generate loop"


class SlitherlinkError(Exception):
    """Base class for every error raised by the engine."""


class LoopGenerationError(SlitherlinkError, RuntimeError):
    """
    Raised when no spanning tree yields a cycle of length >= 4.

    This is the only fatal failure of puzzle generation.
    """

    def __init__(
        self,
        message: str = LOOP_GENERATION_MESSAGE,
        *,
        attempts: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts


class InvalidConfigError(SlitherlinkError, ValueError):
    """Raised for malformed board dimensions or generator options."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


def resolve_step_limit(explicit: Optional[int], env_name: str, default: int) -> int:
    """
    Resolve a node-visit limit with environment override support.

    Priority:
    1) explicit value
    2) env <env_name>
    3) default
    """
    if explicit is not None:
        return explicit

    raw = os.getenv(env_name)
    if raw is None:
        return default

    try:
        limit = int(raw)
        if limit > 0:
            return limit
    except (TypeError, ValueError):
        pass
    return default
