"""
A* segment pathfinding
"""

import math

import numpy as np
import pytest

from pathfinder import find_path, octile_distance, path_cost
from store_layout import NavigableGrid


def open_grid(width=5, height=5):
    return NavigableGrid(np.ones((height, width), dtype=bool))


def grid_with_blocked(width, height, blocked):
    walkable = np.ones((height, width), dtype=bool)
    for x, y in blocked:
        walkable[y, x] = False
    return NavigableGrid(walkable)


def assert_valid_path(grid, path, start, goal):
    assert path[0] == start
    assert path[-1] == goal
    for (x0, y0), (x1, y1) in zip(path, path[1:]):
        assert max(abs(x1 - x0), abs(y1 - y0)) == 1
        assert grid.is_walkable(x1, y1)


def test_straight_path_without_diagonals():
    path = find_path(open_grid(), (0, 0), (4, 0), allow_diagonal=False)
    assert path == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]


def test_diagonal_path():
    path = find_path(open_grid(), (0, 0), (3, 3))
    assert path == [(0, 0), (1, 1), (2, 2), (3, 3)]


def test_four_directional_path_length():
    path = find_path(open_grid(), (0, 0), (3, 3), allow_diagonal=False)

    assert len(path) == 7
    for (x0, y0), (x1, y1) in zip(path, path[1:]):
        assert abs(x1 - x0) + abs(y1 - y0) == 1


def test_no_corner_cutting():
    grid = grid_with_blocked(3, 3, [(1, 0)])

    path = find_path(grid, (0, 0), (1, 1))
    assert path == [(0, 0), (0, 1), (1, 1)]


def test_detour_around_wall():
    # wall on x=2 with a gap at y=4
    grid = grid_with_blocked(5, 5, [(2, 0), (2, 1), (2, 2), (2, 3)])

    path = find_path(grid, (0, 0), (4, 0))
    assert_valid_path(grid, path, (0, 0), (4, 0))
    assert (2, 4) in path


def test_unreachable_goal_returns_empty_path():
    grid = grid_with_blocked(5, 5, [(2, y) for y in range(5)])
    assert find_path(grid, (0, 0), (4, 4)) == []


def test_blocked_goal_returns_empty_path():
    grid = grid_with_blocked(5, 5, [(3, 3)])
    assert find_path(grid, (0, 0), (3, 3)) == []


def test_start_equals_goal():
    assert find_path(open_grid(), (2, 2), (2, 2)) == [(2, 2)]


def test_search_is_idempotent_and_leaves_grid_untouched():
    grid = grid_with_blocked(10, 10, [(3, y) for y in range(8)] + [(6, y) for y in range(2, 10)])
    before = grid.walkable.copy()

    first = find_path(grid, (0, 0), (9, 9))
    second = find_path(grid, (0, 0), (9, 9))

    assert first
    assert first == second
    assert_valid_path(grid, first, (0, 0), (9, 9))
    assert np.array_equal(grid.walkable, before)


def test_path_cost_counts_cells():
    assert path_cost([(0, 0), (1, 0), (2, 0)]) == 3
    assert path_cost([]) == math.inf


def test_octile_distance():
    assert octile_distance((0, 0), (3, 3)) == pytest.approx(math.sqrt(2) * 3)
    assert octile_distance((0, 0), (4, 0)) == 4
