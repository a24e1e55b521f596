"""
Deterministic Propagation
=========================
Cheap fixpoint pass that applies only forced moves, no guessing.

The share of edges it decides is the logic-solved fraction used as a
difficulty proxy: close to 1.0 means the puzzle falls to local rules,
close to 0.0 means the solver has to search.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from slitherlink.grid import Clue, EdgeState, Grid
from slitherlink.solvers.backtracking_solver import SolverState


@dataclass
class PropagationResult:
    determined_edges: int
    total_edges: int
    iterations: int
    assignments: List[Tuple[int, int]] = field(default_factory=list)
    contradiction: bool = False
    edge_states: List[int] = field(default_factory=list)

    @property
    def solved_fraction(self) -> float:
        if self.total_edges == 0:
            return 0.0
        return self.determined_edges / self.total_edges


class DeterministicPropagator:
    """
    Cell rule: clue reached -> rest Off; clue needs every unknown -> rest On.
    Vertex rule: degree 2 -> rest Off; degree 1 with one unknown -> On;
    degree 0 with one unknown -> Off (a loop vertex cannot end there).
    Degree 0 with several unknowns forces nothing: the loop may skip the vertex.
    """

    def __init__(self, grid: Grid, clues: Sequence[Clue]):
        self.grid = grid
        self.clues = list(clues)

    def run(self, edge_states: Optional[Sequence[int]] = None) -> PropagationResult:
        state = SolverState(self.grid, self.clues)
        contradiction = False
        if edge_states is not None:
            contradiction = not state.seed(edge_states)

        assignments: List[Tuple[int, int]] = []
        iterations = 0
        changed = not contradiction

        while changed:
            changed = False
            iterations += 1

            for cell_id, cell in enumerate(state.cells):
                if cell.clue is None or cell.remaining == 0:
                    continue
                if cell.on_count == cell.clue:
                    forced = EdgeState.OFF
                elif cell.on_count + cell.remaining == cell.clue:
                    forced = EdgeState.ON
                else:
                    continue
                ok, applied = self._force(state, self.grid.cells[cell_id].edges, forced, assignments)
                changed = changed or applied
                if not ok:
                    contradiction = True
                    break
            if contradiction:
                break

            for vertex_id, vertex in enumerate(state.vertices):
                if vertex.remaining == 0:
                    continue
                if vertex.on_count == 2:
                    forced = EdgeState.OFF
                elif vertex.on_count == 1 and vertex.remaining == 1:
                    forced = EdgeState.ON
                elif vertex.on_count == 0 and vertex.remaining == 1:
                    forced = EdgeState.OFF
                else:
                    continue
                ok, applied = self._force(state, self.grid.vertices[vertex_id].edges, forced, assignments)
                changed = changed or applied
                if not ok:
                    contradiction = True
                    break
            if contradiction:
                break

        total = len(self.grid.edges)
        return PropagationResult(
            determined_edges=total - state.unknown_count(),
            total_edges=total,
            iterations=iterations,
            assignments=assignments,
            contradiction=contradiction,
            edge_states=[int(s) for s in state.edge_states],
        )

    @staticmethod
    def _force(state: SolverState, edge_ids, value, assignments) -> Tuple[bool, bool]:
        applied = False
        for eid in edge_ids:
            if state.edge_states[eid] != EdgeState.UNKNOWN:
                continue
            applied = True
            assignments.append((eid, int(value)))
            if not state.assign(eid, value):
                return False, applied
        return True, applied


def propagate(
    grid: Grid,
    clues: Sequence[Clue],
    edge_states: Optional[Sequence[int]] = None,
) -> PropagationResult:
    return DeterministicPropagator(grid, clues).run(edge_states)
