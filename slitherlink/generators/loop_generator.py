"""
Loop Generator
==============
Random simple cycle on the grid graph, used as the hidden solution.

A random spanning tree is grown by randomized depth-first traversal; adding
one non-tree edge closes exactly one cycle, the tree path between its two
endpoints plus the edge itself. Loops vary in length and shape, they are
neither Hamiltonian nor of a fixed size.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple

from slitherlink.grid import Grid
from slitherlink.solvers.solver_errors import LoopGenerationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 20
MIN_LOOP_LENGTH = 4

# adjacency[v] = [(neighbour, edge_id), ...]
Adjacency = List[List[Tuple[int, int]]]


@dataclass
class SpanningTree:
    parent: List[int]
    parent_edge: List[int]
    tree_edges: Set[int]


def build_adjacency(grid: Grid) -> Adjacency:
    adjacency: Adjacency = [[] for _ in grid.vertices]
    for edge in grid.edges:
        a, b = edge.vertices
        adjacency[a].append((b, edge.id))
        adjacency[b].append((a, edge.id))
    return adjacency


def build_random_spanning_tree(grid: Grid, adjacency: Adjacency,
                               rng: random.Random) -> SpanningTree:
    total = len(grid.vertices)
    visited = [False] * total
    parent = [-1] * total
    parent_edge = [-1] * total

    def sweep(root):
        visited[root] = True
        stack = [root]
        while stack:
            v = stack.pop()
            neighbors = list(adjacency[v])
            rng.shuffle(neighbors)
            for to, edge_id in neighbors:
                if not visited[to]:
                    visited[to] = True
                    parent[to] = v
                    parent_edge[to] = edge_id
                    stack.append(to)

    sweep(0)
    # Disconnected leftovers cannot occur on a grid, sweep them anyway
    for v in range(total):
        if not visited[v]:
            sweep(v)

    tree_edges = {e for e in parent_edge if e >= 0}
    return SpanningTree(parent, parent_edge, tree_edges)


def trace_tree_path(start: int, end: int, tree: SpanningTree) -> List[int]:
    """Edge ids on the tree path between two vertices, via their lowest common ancestor."""
    parent = tree.parent
    parent_edge = tree.parent_edge

    ancestors = set()
    current = start
    while current != -1:
        ancestors.add(current)
        current = parent[current]

    lca = end
    end_arm = []
    while lca != -1 and lca not in ancestors:
        end_arm.append(lca)
        lca = parent[lca]

    path = []
    current = start
    while current != lca and current != -1:
        path.append(parent_edge[current])
        current = parent[current]
    for node in reversed(end_arm):
        path.append(parent_edge[node])

    return [e for e in path if e != -1]


def _cycle_from_tree(grid: Grid, tree: SpanningTree,
                     rng: random.Random) -> Optional[FrozenSet[int]]:
    non_tree_edges = [e.id for e in grid.edges if e.id not in tree.tree_edges]
    rng.shuffle(non_tree_edges)

    for extra_edge in non_tree_edges:
        a, b = grid.edges[extra_edge].vertices
        path = trace_tree_path(a, b, tree)
        if len(path) + 1 < MIN_LOOP_LENGTH:
            continue
        return frozenset(path) | {extra_edge}
    return None


def generate_random_loop(grid: Grid, rng: Optional[random.Random] = None,
                         max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> FrozenSet[int]:
    """
    Return the edge ids of a random simple loop of length >= 4.

    Raises LoopGenerationError when every attempt fails.
    """
    rng = rng or random.Random()
    adjacency = build_adjacency(grid)
    for attempt in range(max_attempts):
        tree = build_random_spanning_tree(grid, adjacency, rng)
        cycle = _cycle_from_tree(grid, tree, rng)
        if cycle is not None:
            logger.debug("Loop of length %d found on attempt %d", len(cycle), attempt + 1)
            return cycle
    raise LoopGenerationError(
        f"Failed to generate loop on {grid.height}x{grid.width} grid "
        f"after {max_attempts} attempts",
        attempts=max_attempts,
    )
