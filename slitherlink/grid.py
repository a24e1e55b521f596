"""
Grid Topology
=============
Vertices, edges and cells of an H x W Slitherlink board.

Edge ids are assigned in emission order: every horizontal edge
(row 0..H, col 0..W-1) first, then every vertical edge
(row 0..H-1, col 0..W). Iteration over ``grid.edges`` is therefore
stable for a given board size.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

from slitherlink.solvers.solver_errors import InvalidConfigError

# A cell clue: None when the cell shows nothing, otherwise 0..4
Clue = Optional[int]


class EdgeState(IntEnum):
    UNKNOWN = -1
    OFF = 0
    ON = 1


@dataclass(frozen=True)
class GridEdge:
    id: int
    type: str                   # 'H' or 'V'
    row: int
    col: int
    vertices: Tuple[int, int]
    cells: Tuple[int, ...]      # 1 cell on the border, 2 inside


@dataclass(frozen=True)
class GridVertex:
    index: int
    edges: Tuple[int, ...]


@dataclass(frozen=True)
class GridCell:
    index: int
    row: int
    col: int
    edges: Tuple[int, ...]


@dataclass(frozen=True)
class Grid:
    height: int
    width: int
    vertices: Tuple[GridVertex, ...]
    cells: Tuple[GridCell, ...]
    edges: Tuple[GridEdge, ...]
    horizontal_edges: Tuple[Tuple[int, ...], ...]
    vertical_edges: Tuple[Tuple[int, ...], ...]

    def vertex_index(self, row: int, col: int) -> int:
        return row * (self.width + 1) + col

    def cell_index(self, row: int, col: int) -> int:
        return row * self.width + col

    def is_border_cell(self, cell_id: int) -> bool:
        cell = self.cells[cell_id]
        return (
            cell.row == 0
            or cell.col == 0
            or cell.row == self.height - 1
            or cell.col == self.width - 1
        )

    @property
    def border_cell_count(self) -> int:
        return sum(1 for c in self.cells if self.is_border_cell(c.index))

    @property
    def interior_cell_count(self) -> int:
        return len(self.cells) - self.border_cell_count


def build_grid(height: int, width: int) -> Grid:
    """
    Build the immutable topology of an ``height`` x ``width`` board.

    Any size is accepted here; the generator rejects boards with more than
    ``MAX_SEARCH_EDGES`` edges because the solver recurses once per edge.
    """
    if height < 1 or width < 1:
        raise InvalidConfigError(
            f"Board must be at least 1x1, got {height}x{width}", field="size"
        )

    def vertex_index(row, col):
        return row * (width + 1) + col

    def cell_index(row, col):
        return row * width + col

    vertex_edges: List[List[int]] = [[] for _ in range((height + 1) * (width + 1))]
    cell_edges: List[List[int]] = [[] for _ in range(height * width)]
    edges: List[GridEdge] = []
    horizontal = [[0] * width for _ in range(height + 1)]
    vertical = [[0] * (width + 1) for _ in range(height)]

    def emit(kind, row, col, v1, v2, touched):
        edge_id = len(edges)
        edges.append(GridEdge(edge_id, kind, row, col, (v1, v2), tuple(touched)))
        vertex_edges[v1].append(edge_id)
        vertex_edges[v2].append(edge_id)
        for ci in touched:
            cell_edges[ci].append(edge_id)
        return edge_id

    # Horizontal edges
    for row in range(height + 1):
        for col in range(width):
            touched = []
            if row > 0:
                touched.append(cell_index(row - 1, col))
            if row < height:
                touched.append(cell_index(row, col))
            horizontal[row][col] = emit(
                "H", row, col, vertex_index(row, col), vertex_index(row, col + 1), touched
            )

    # Vertical edges
    for row in range(height):
        for col in range(width + 1):
            touched = []
            if col > 0:
                touched.append(cell_index(row, col - 1))
            if col < width:
                touched.append(cell_index(row, col))
            vertical[row][col] = emit(
                "V", row, col, vertex_index(row, col), vertex_index(row + 1, col), touched
            )

    return Grid(
        height=height,
        width=width,
        vertices=tuple(GridVertex(i, tuple(e)) for i, e in enumerate(vertex_edges)),
        cells=tuple(
            GridCell(i, i // width, i % width, tuple(e)) for i, e in enumerate(cell_edges)
        ),
        edges=tuple(edges),
        horizontal_edges=tuple(tuple(r) for r in horizontal),
        vertical_edges=tuple(tuple(r) for r in vertical),
    )
