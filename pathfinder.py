"""
Segment pathfinding: A* between two cells of a NavigableGrid.

Movement is 4-directional; diagonal steps are optional and only taken when
both orthogonal cells beside the step are walkable (no corner cutting).
"""

import heapq
import logging
import math
from itertools import count
from typing import Dict, List, Optional, Set

from store_layout import Coord, NavigableGrid

logger = logging.getLogger(__name__)

SQRT2 = math.sqrt(2)

# up, right, down, left
ORTHOGONAL_STEPS = [(0, -1), (1, 0), (0, 1), (-1, 0)]
DIAGONAL_STEPS = [(-1, -1), (1, -1), (1, 1), (-1, 1)]


def manhattan_distance(a: Coord, b: Coord) -> float:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def octile_distance(a: Coord, b: Coord) -> float:
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    return (SQRT2 - 1) * min(dx, dy) + max(dx, dy)


def _neighbors(grid: NavigableGrid, node: Coord, allow_diagonal: bool):
    """Yield (neighbor, step_cost) pairs reachable from node."""
    x, y = node
    for dx, dy in ORTHOGONAL_STEPS:
        nx, ny = x + dx, y + dy
        if grid.is_walkable(nx, ny):
            yield (nx, ny), 1.0

    if not allow_diagonal:
        return

    for dx, dy in DIAGONAL_STEPS:
        nx, ny = x + dx, y + dy
        if (
            grid.is_walkable(nx, ny)
            and grid.is_walkable(x + dx, y)
            and grid.is_walkable(x, y + dy)
        ):
            yield (nx, ny), SQRT2


def _reconstruct(came_from: Dict[Coord, Coord], goal: Coord) -> List[Coord]:
    path = [goal]
    node = goal
    while node in came_from:
        node = came_from[node]
        path.append(node)
    path.reverse()
    return path


def find_path(
    grid: NavigableGrid,
    start: Coord,
    goal: Coord,
    allow_diagonal: bool = True,
) -> List[Coord]:
    """
    Shortest walking path from start to goal.

    The grid is only read. Open list, scores, parents and the closed set are
    created for this call alone, so repeated or concurrent calls on the same
    grid never interfere.

    Args:
        grid: NavigableGrid to search
        start: Starting cell (x, y)
        goal: Goal cell (x, y)
        allow_diagonal: Permit corner-safe diagonal steps

    Returns:
        [(x, y), ...] from start to goal inclusive; [] if no path exists
    """
    if not grid.is_walkable(*start) or not grid.is_walkable(*goal):
        logger.debug(f"A*: start {start} or goal {goal} is not walkable")
        return []

    if start == goal:
        return [start]

    heuristic = octile_distance if allow_diagonal else manhattan_distance

    tie_breaker = count()
    open_heap = [(heuristic(start, goal), next(tie_breaker), start)]
    g_score: Dict[Coord, float] = {start: 0.0}
    came_from: Dict[Coord, Coord] = {}
    closed: Set[Coord] = set()

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current in closed:
            continue
        closed.add(current)

        if current == goal:
            path = _reconstruct(came_from, goal)
            logger.debug(f"A*: {start} -> {goal} in {len(path)} cells, explored {len(closed)}")
            return path

        for neighbor, step_cost in _neighbors(grid, current, allow_diagonal):
            if neighbor in closed:
                continue
            tentative_g = g_score[current] + step_cost
            best_g: Optional[float] = g_score.get(neighbor)
            if best_g is None or tentative_g < best_g:
                g_score[neighbor] = tentative_g
                came_from[neighbor] = current
                f_score = tentative_g + heuristic(neighbor, goal)
                heapq.heappush(open_heap, (f_score, next(tie_breaker), neighbor))

    logger.debug(f"A*: no path from {start} to {goal}, explored {len(closed)}")
    return []


def path_cost(path: List[Coord]) -> float:
    """Leg cost used for route comparison: number of cells walked, start included."""
    return float(len(path)) if path else math.inf
