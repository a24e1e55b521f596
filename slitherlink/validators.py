"""
Loop Validators
===============
Local feasibility checks used by the solvers, the single-loop test applied
to complete assignments, and the comparison of a user-drawn board against
a generated puzzle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from slitherlink.grid import EdgeState, Grid

if TYPE_CHECKING:
    from slitherlink.puzzle import Puzzle
    from slitherlink.solvers.backtracking_solver import CellState, VertexState


def check_vertex_constraints(vertex: "VertexState") -> bool:
    if vertex.on_count > 2:
        return False
    if vertex.on_count == 1 and vertex.remaining == 0:
        return False  # Dead un-closed branch
    if vertex.on_count > 0 and vertex.on_count + vertex.remaining < 2:
        return False
    return True


def check_cell_constraints(cell: "CellState") -> bool:
    if cell.clue is None:
        return True
    if cell.on_count > cell.clue:
        return False
    if cell.on_count + cell.remaining < cell.clue:
        return False
    if cell.remaining == 0 and cell.on_count != cell.clue:
        return False
    return True


def is_single_loop(grid: Grid, edge_states: Sequence[int]) -> bool:
    """
    True when the On edges form exactly one simple closed loop.

    An assignment with no On edge at all is rejected.
    """
    active_edges = [eid for eid, state in enumerate(edge_states) if state == EdgeState.ON]
    if not active_edges:
        return False

    vertex_degrees = [0] * len(grid.vertices)
    for eid in active_edges:
        a, b = grid.edges[eid].vertices
        vertex_degrees[a] += 1
        vertex_degrees[b] += 1

    for degree in vertex_degrees:
        if degree != 0 and degree != 2:
            return False

    vertex_to_edges: Dict[int, List[int]] = {}
    for eid in active_edges:
        for vid in grid.edges[eid].vertices:
            vertex_to_edges.setdefault(vid, []).append(eid)

    visited_edges = {active_edges[0]}
    stack = [active_edges[0]]
    while stack:
        eid = stack.pop()
        for vid in grid.edges[eid].vertices:
            for next_eid in vertex_to_edges.get(vid, ()):
                if next_eid not in visited_edges:
                    visited_edges.add(next_eid)
                    stack.append(next_eid)

    if len(visited_edges) != len(active_edges):
        return False

    vertices_used = sum(1 for degree in vertex_degrees if degree > 0)
    return vertices_used == len(active_edges)


def count_edges_around_cell(grid: Grid, edge_states: Sequence[int], cell_id: int) -> int:
    return sum(1 for eid in grid.cells[cell_id].edges if edge_states[eid] == EdgeState.ON)


def check_win_condition(puzzle: "Puzzle", user_edge_states: Sequence[int]) -> Tuple[bool, str]:
    """
    Check whether a user-drawn board solves the puzzle.
    Conditions:
    1. All shown clues satisfied.
    2. Single connected loop (1 component, all degrees=2).
    """
    grid = puzzle.grid
    if len(user_edge_states) != len(grid.edges):
        return False, "Board size mismatch"

    # 1. Clues
    for cell_id, clue in enumerate(puzzle.clues):
        if clue is None:
            continue
        if count_edges_around_cell(grid, user_edge_states, cell_id) != clue:
            return False, "Clues not satisfied"

    # 2. Loop structure
    degrees = [0] * len(grid.vertices)
    for eid, state in enumerate(user_edge_states):
        if state == EdgeState.ON:
            a, b = grid.edges[eid].vertices
            degrees[a] += 1
            degrees[b] += 1
    if not any(degrees):
        return False, "Empty board"
    if any(d not in (0, 2) for d in degrees):
        return False, "Not a closed loop"

    # 3. Connectivity
    if not is_single_loop(grid, user_edge_states):
        return False, "Multiple loops detected"

    return True, "Winner"


def matches_solution(puzzle: "Puzzle", user_edge_states: Sequence[int]) -> bool:
    """Edge-by-edge comparison with the stored solution."""
    if len(user_edge_states) != len(puzzle.solution_edge_states):
        return False
    return all(
        (state == EdgeState.ON) == (expected == EdgeState.ON)
        for state, expected in zip(user_edge_states, puzzle.solution_edge_states)
    )
