"""
Clue derivation and clue-set bookkeeping.
"""

from __future__ import annotations

import random
from typing import Iterable, List, Sequence

from slitherlink.grid import Clue, Grid
from slitherlink.puzzle import ClueStatistics

# Removal priority: low clues go first
REMOVAL_GROUPS = (0, 1, 2, 3)


def derive_clues(grid: Grid, loop_edges: Iterable[int]) -> List[int]:
    """Per cell, the number of loop edges bordering it."""
    clues = [0] * len(grid.cells)
    for edge_id in loop_edges:
        for cell_id in grid.edges[edge_id].cells:
            clues[cell_id] += 1
    return clues


def count_clues(clues: Sequence[Clue]) -> int:
    return sum(1 for c in clues if c is not None)


def removal_order(grid: Grid, clues: Sequence[Clue], rng: random.Random) -> List[int]:
    """
    Clued cells grouped by value (0, 1, 2, 3, then anything else), each group
    shuffled. Removing low clues first leaves fewer giveaway 0s and 1s.
    """
    groups = {value: [] for value in REMOVAL_GROUPS}
    other = []
    for cell in grid.cells:
        clue = clues[cell.index]
        if clue is None:
            continue
        groups.get(clue, other).append(cell.index)

    order: List[int] = []
    for bucket in [groups[v] for v in REMOVAL_GROUPS] + [other]:
        rng.shuffle(bucket)
        order.extend(bucket)
    return order


def clue_statistics(grid: Grid, clues: Sequence[Clue]) -> ClueStatistics:
    counts = {
        "clue_count": 0, "zero": 0, "one": 0, "two": 0, "three": 0,
        "non_zero": 0, "high": 0,
        "interior_zero": 0, "interior_non_zero": 0, "interior_high": 0,
        "border_zero": 0, "border_non_zero": 0, "border_high": 0,
    }
    by_value = {0: "zero", 1: "one", 2: "two", 3: "three"}

    for cell in grid.cells:
        clue = clues[cell.index]
        if clue is None:
            continue
        region = "border" if grid.is_border_cell(cell.index) else "interior"
        counts["clue_count"] += 1
        if clue in by_value:
            counts[by_value[clue]] += 1
        if clue == 0:
            counts[f"{region}_zero"] += 1
        else:
            counts["non_zero"] += 1
            counts[f"{region}_non_zero"] += 1
        if clue >= 2:
            counts["high"] += 1
            counts[f"{region}_high"] += 1

    return ClueStatistics(**counts)
