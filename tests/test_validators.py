import unittest
import sys
import os
from dataclasses import replace

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slitherlink.config import GeneratorConfig
from slitherlink.generators.puzzle_generator import generate_puzzle
from slitherlink.grid import build_grid
from slitherlink.solvers.backtracking_solver import CellState, VertexState
from slitherlink.validators import (
    check_cell_constraints,
    check_vertex_constraints,
    check_win_condition,
    count_edges_around_cell,
    is_single_loop,
    matches_solution,
)


def _states(grid, on_edges):
    return [1 if eid in on_edges else 0 for eid in range(len(grid.edges))]


class TestLocalConstraints(unittest.TestCase):
    def test_vertex_constraints(self):
        self.assertTrue(check_vertex_constraints(VertexState(0, 4)))
        self.assertTrue(check_vertex_constraints(VertexState(1, 1)))
        self.assertTrue(check_vertex_constraints(VertexState(2, 0)))
        self.assertFalse(check_vertex_constraints(VertexState(3, 0)))
        self.assertFalse(check_vertex_constraints(VertexState(1, 0)))

    def test_cell_constraints(self):
        self.assertTrue(check_cell_constraints(CellState(None, 4, 0)))
        self.assertTrue(check_cell_constraints(CellState(2, 1, 2)))
        self.assertFalse(check_cell_constraints(CellState(1, 2, 1)))
        self.assertFalse(check_cell_constraints(CellState(3, 1, 1)))
        self.assertFalse(check_cell_constraints(CellState(2, 1, 0)))


class TestSingleLoop(unittest.TestCase):
    def setUp(self):
        # 1x3 board: H edges 0-2 on top, 3-5 below, V edges 6-9
        self.grid = build_grid(1, 3)

    def test_unit_square(self):
        self.assertTrue(is_single_loop(self.grid, _states(self.grid, {0, 3, 6, 7})))

    def test_outer_rectangle(self):
        on_edges = {0, 1, 2, 3, 4, 5, 6, 9}
        self.assertTrue(is_single_loop(self.grid, _states(self.grid, on_edges)))

    def test_two_loops(self):
        on_edges = {0, 3, 6, 7, 2, 5, 8, 9}
        self.assertFalse(is_single_loop(self.grid, _states(self.grid, on_edges)))

    def test_open_path(self):
        self.assertFalse(is_single_loop(self.grid, _states(self.grid, {0, 1, 6})))

    def test_empty(self):
        self.assertFalse(is_single_loop(self.grid, [0] * len(self.grid.edges)))

    def test_count_edges_around_cell(self):
        states = _states(self.grid, {0, 3, 6, 7})
        self.assertEqual(count_edges_around_cell(self.grid, states, 0), 4)
        self.assertEqual(count_edges_around_cell(self.grid, states, 1), 1)
        self.assertEqual(count_edges_around_cell(self.grid, states, 2), 0)


class TestWinCondition(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.puzzle = generate_puzzle(4, 4, GeneratorConfig(ensure_unique=False), seed=5)
        cls.blank = replace(cls.puzzle, clues=(None,) * 16)

    def test_solution_wins(self):
        solution = list(self.puzzle.solution_edge_states)
        self.assertEqual(check_win_condition(self.puzzle, solution), (True, "Winner"))
        self.assertTrue(matches_solution(self.puzzle, solution))

    def test_unsatisfied_clues(self):
        empty = [0] * len(self.puzzle.grid.edges)
        self.assertEqual(check_win_condition(self.puzzle, empty),
                         (False, "Clues not satisfied"))
        self.assertFalse(matches_solution(self.puzzle, empty))

    def test_empty_board(self):
        empty = [0] * len(self.puzzle.grid.edges)
        self.assertEqual(check_win_condition(self.blank, empty), (False, "Empty board"))

    def test_open_path(self):
        grid = self.blank.grid
        states = _states(grid, {grid.horizontal_edges[0][0]})
        self.assertEqual(check_win_condition(self.blank, states), (False, "Not a closed loop"))

    def test_two_loops(self):
        grid = self.blank.grid
        on_edges = set(grid.cells[0].edges) | set(grid.cells[15].edges)
        self.assertEqual(check_win_condition(self.blank, _states(grid, on_edges)),
                         (False, "Multiple loops detected"))

    def test_size_mismatch(self):
        self.assertEqual(check_win_condition(self.puzzle, [0, 1]),
                         (False, "Board size mismatch"))
        self.assertFalse(matches_solution(self.puzzle, [0, 1]))

    def test_unknown_counts_as_off(self):
        states = [s if s == 1 else -1 for s in self.puzzle.solution_edge_states]
        self.assertTrue(matches_solution(self.puzzle, states))
        self.assertTrue(check_win_condition(self.puzzle, states)[0])


if __name__ == '__main__':
    unittest.main()
