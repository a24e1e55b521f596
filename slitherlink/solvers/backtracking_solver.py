"""
Backtracking Solver
===================
Budgeted backtracking search over the tri-state edge assignment.

- Branch edge chosen by a constraint-pressure heuristic (random jitter
  breaks ties)
- ON tried before OFF, strict assign -> check -> recurse -> unassign
- Node-visit budget shared through an explicit NodeCounter; once spent the
  search unwinds and reports ``exhausted``
- Early exit as soon as ``max_solutions`` loops were recorded
- Recursion depth is one frame per edge, boards are capped at
  ``MAX_SEARCH_EDGES`` edges by the generator config
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from slitherlink.grid import Clue, EdgeState, Grid
from slitherlink.solvers.solver_errors import DEFAULT_SAFE_LIMIT
from slitherlink.validators import (
    check_cell_constraints,
    check_vertex_constraints,
    is_single_loop,
)


@dataclass
class CellState:
    clue: Clue
    on_count: int
    remaining: int


@dataclass
class VertexState:
    on_count: int
    remaining: int


@dataclass
class NodeCounter:
    """Node-visit budget for one search, passed by reference into the recursion."""
    limit: int
    visited: int = 0
    exhausted: bool = False

    def tick(self) -> bool:
        """Consume one visit. False once the budget is spent."""
        if self.visited >= self.limit:
            self.exhausted = True
            return False
        self.visited += 1
        return True


@dataclass
class SolveResult:
    solutions: List[List[int]] = field(default_factory=list)
    exhausted: bool = False
    visited: int = 0

    @property
    def status(self) -> str:
        if self.exhausted:
            return "Timeout"
        if self.solutions:
            return "Success"
        return "NoSolution"

    @property
    def is_unique(self) -> bool:
        return len(self.solutions) == 1 and not self.exhausted


class SolverState:
    """
    Mutable edge states plus incremental per-cell and per-vertex counters.

    ``assign``/``unassign`` touch only the two vertices and one or two cells
    of the edge, so a rollback restores the exact previous state.
    """

    def __init__(self, grid: Grid, clues: Sequence[Clue]):
        if len(clues) != len(grid.cells):
            raise ValueError(
                f"Expected {len(grid.cells)} clues, got {len(clues)}"
            )
        self.grid = grid
        self.edge_states: List[int] = [EdgeState.UNKNOWN] * len(grid.edges)
        self.cells = [
            CellState(clues[cell.index], 0, len(cell.edges)) for cell in grid.cells
        ]
        self.vertices = [VertexState(0, len(vertex.edges)) for vertex in grid.vertices]

    def assign(self, edge_id: int, value: int) -> bool:
        """Set an Unknown edge and report local feasibility around it."""
        self.edge_states[edge_id] = value
        edge = self.grid.edges[edge_id]
        is_on = value == EdgeState.ON

        for vid in edge.vertices:
            vertex = self.vertices[vid]
            if is_on:
                vertex.on_count += 1
            vertex.remaining -= 1
        for cid in edge.cells:
            cell = self.cells[cid]
            if is_on:
                cell.on_count += 1
            cell.remaining -= 1

        for vid in edge.vertices:
            if not check_vertex_constraints(self.vertices[vid]):
                return False
        for cid in edge.cells:
            if not check_cell_constraints(self.cells[cid]):
                return False
        return True

    def unassign(self, edge_id: int) -> None:
        value = self.edge_states[edge_id]
        if value == EdgeState.UNKNOWN:
            return
        edge = self.grid.edges[edge_id]
        is_on = value == EdgeState.ON

        for vid in edge.vertices:
            vertex = self.vertices[vid]
            if is_on:
                vertex.on_count -= 1
            vertex.remaining += 1
        for cid in edge.cells:
            cell = self.cells[cid]
            if is_on:
                cell.on_count -= 1
            cell.remaining += 1

        self.edge_states[edge_id] = EdgeState.UNKNOWN

    def seed(self, initial_states: Sequence[int]) -> bool:
        """Apply pre-decided edges. False if any of them is locally infeasible."""
        feasible = True
        for edge_id, value in enumerate(initial_states):
            if value == EdgeState.UNKNOWN:
                continue
            if not self.assign(edge_id, value):
                feasible = False
        return feasible

    def unknown_count(self) -> int:
        return sum(1 for s in self.edge_states if s == EdgeState.UNKNOWN)


class BacktrackingSolver:
    """
    Enumerates up to ``max_solutions`` single-loop assignments for a clue set.

    Typical calls:
    - ``max_solutions=2``: uniqueness test (a second solution means ambiguous)
    - ``max_solutions=1``: difficulty probe, ``visited`` is the effort spent
    """

    DEFAULT_MAX_SOLUTIONS = 2
    DEFAULT_MAX_NODE_VISITS = DEFAULT_SAFE_LIMIT
    TIE_BREAK_JITTER = 0.01

    def __init__(
        self,
        grid: Grid,
        clues: Sequence[Clue],
        max_solutions: int = DEFAULT_MAX_SOLUTIONS,
        max_node_visits: int = DEFAULT_MAX_NODE_VISITS,
        rng: Optional[random.Random] = None,
        initial_states: Optional[Sequence[int]] = None,
    ):
        self.grid = grid
        self.clues = list(clues)
        self.max_solutions = max_solutions
        self.max_node_visits = max_node_visits
        self.rng = rng or random.Random()
        self.initial_states = initial_states

    def solve(self) -> SolveResult:
        state = SolverState(self.grid, self.clues)
        counter = NodeCounter(limit=self.max_node_visits)
        solutions: List[List[int]] = []

        if self.initial_states is not None and not state.seed(self.initial_states):
            return SolveResult(solutions, exhausted=False, visited=0)

        if self.max_solutions > 0:
            self._backtrack(state, counter, solutions)

        return SolveResult(
            solutions=solutions,
            exhausted=counter.exhausted,
            visited=counter.visited,
        )

    def _backtrack(self, state: SolverState, counter: NodeCounter,
                   solutions: List[List[int]]) -> None:
        if len(solutions) >= self.max_solutions:
            return
        if not counter.tick():
            return

        next_edge = self._get_best_unknown_edge(state)
        if next_edge is None:
            # Base case: every edge decided
            if is_single_loop(self.grid, state.edge_states):
                solutions.append([int(s) for s in state.edge_states])
            return

        # ON first: stronger pruning around satisfied clues
        for value in (EdgeState.ON, EdgeState.OFF):
            if state.assign(next_edge, value):
                self._backtrack(state, counter, solutions)
            state.unassign(next_edge)
            if counter.exhausted or len(solutions) >= self.max_solutions:
                return

    def _get_best_unknown_edge(self, state: SolverState) -> Optional[int]:
        best_edge = None
        best_score = float("-inf")
        edge_states = state.edge_states
        vertices = state.vertices
        cells = state.cells
        jitter = self.TIE_BREAK_JITTER
        rand = self.rng.random

        for edge in self.grid.edges:
            if edge_states[edge.id] != EdgeState.UNKNOWN:
                continue
            score = 0.0
            for vid in edge.vertices:
                vertex = vertices[vid]
                if vertex.on_count == 1:
                    score += 5
                score += 2 - vertex.remaining
            for cid in edge.cells:
                cell = cells[cid]
                if cell.clue is not None:
                    score += cell.on_count * 3
                    score += 4 - cell.remaining
            score += rand() * jitter
            if score > best_score:
                best_score = score
                best_edge = edge.id

        return best_edge


def solve_slitherlink(
    grid: Grid,
    clues: Sequence[Clue],
    max_solutions: int = BacktrackingSolver.DEFAULT_MAX_SOLUTIONS,
    max_node_visits: int = BacktrackingSolver.DEFAULT_MAX_NODE_VISITS,
    rng: Optional[random.Random] = None,
) -> SolveResult:
    return BacktrackingSolver(
        grid, clues,
        max_solutions=max_solutions,
        max_node_visits=max_node_visits,
        rng=rng,
    ).solve()
