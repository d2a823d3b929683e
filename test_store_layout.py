"""
Floor plan, navigable grid, entrance lookup and access point resolution
"""

import numpy as np
import pytest

from route_errors import CellOutOfBoundsError, EntranceNotFoundError, UnreachableShelfError
from store_layout import (
    Cell,
    CellType,
    FloorPlan,
    NavigableGrid,
    ShelfTarget,
    build_navigable_grid,
    find_entrance,
    find_nearest_accessible_point,
    resolve_access_points,
)


def make_plan(*cells):
    return FloorPlan(
        store_id="store-1",
        cells=[Cell(x=x, y=y, cell_type=cell_type) for x, y, cell_type in cells],
    )


def test_registered_cells_block_except_entrance():
    plan = make_plan(
        (0, 0, CellType.ENTRANCE),
        (2, 2, CellType.SHELF),
        (3, 3, CellType.FRIDGE),
        (4, 4, CellType.CHECKOUT_COUNTER),
        (5, 5, CellType.OBSTACLE),
        (6, 6, None),
    )
    grid = build_navigable_grid(plan, 10, 10)

    assert grid.is_walkable(0, 0)
    for x, y in [(2, 2), (3, 3), (4, 4), (5, 5), (6, 6)]:
        assert not grid.is_walkable(x, y)

    assert int(grid.walkable.sum()) == 100 - 5
    assert grid.is_walkable(9, 9)
    assert grid.is_walkable(7, 1)


def test_grid_size_is_configurable():
    grid = build_navigable_grid(make_plan((0, 0, CellType.ENTRANCE)), 15, 6)

    assert (grid.width, grid.height) == (15, 6)
    assert grid.is_walkable(14, 5)
    assert not grid.is_walkable(5, 14)


def test_out_of_bounds_is_not_walkable():
    grid = build_navigable_grid(make_plan((0, 0, CellType.ENTRANCE)), 10, 10)

    assert not grid.is_walkable(-1, 0)
    assert not grid.is_walkable(0, 10)
    assert not grid.is_walkable(10, 0)


def test_cell_outside_grid_is_rejected():
    plan = make_plan((0, 0, CellType.ENTRANCE), (10, 3, CellType.SHELF))

    with pytest.raises(CellOutOfBoundsError):
        build_navigable_grid(plan, 10, 10)


def test_grid_is_read_only():
    grid = build_navigable_grid(make_plan((0, 0, CellType.ENTRANCE)), 4, 4)

    with pytest.raises(ValueError):
        grid.walkable[1, 1] = False


def test_grid_rendering():
    plan = make_plan((0, 0, CellType.ENTRANCE), (2, 1, CellType.SHELF))
    grid = build_navigable_grid(plan, 3, 2)

    assert grid.render(entrance=(0, 0)) == "E..\n..#"
    assert grid.render(entrance=(0, 0), waypoints=[(1, 0), (1, 1)]) == "E*.\n.*#"

    df = grid.to_dataframe()
    assert df.shape == (2, 3)
    assert not df.loc[1, 2]
    assert df.loc[0, 2]


def test_find_entrance():
    plan = make_plan((3, 3, CellType.SHELF), (0, 4, CellType.ENTRANCE))
    assert find_entrance(plan) == (0, 4)


def test_first_registered_entrance_wins():
    plan = make_plan(
        (3, 3, CellType.SHELF),
        (0, 4, CellType.ENTRANCE),
        (9, 0, CellType.ENTRANCE),
    )
    assert find_entrance(plan) == (0, 4)


def test_missing_entrance():
    plan = make_plan((3, 3, CellType.SHELF))

    with pytest.raises(EntranceNotFoundError):
        find_entrance(plan)


def test_walkable_target_is_returned_unchanged():
    grid = build_navigable_grid(make_plan((0, 0, CellType.ENTRANCE)), 10, 10)
    assert find_nearest_accessible_point(grid, (4, 4)) == (4, 4)


def test_nearest_neighbor_ties_keep_up_first():
    # up (1, 2) and left (2, 1) are both sqrt(5) from the origin
    grid = build_navigable_grid(make_plan((2, 2, CellType.SHELF)), 10, 10)
    assert find_nearest_accessible_point(grid, (2, 2)) == (1, 2)


def test_up_and_down_move_along_x():
    plan = make_plan((2, 2, CellType.SHELF), (1, 2, CellType.OBSTACLE))
    grid = build_navigable_grid(plan, 10, 10)

    # with up blocked, left (2, 1) is the closest to the origin
    assert find_nearest_accessible_point(grid, (2, 2)) == (2, 1)


def test_neighbors_outside_grid_are_skipped():
    grid = build_navigable_grid(make_plan((0, 3, CellType.SHELF)), 10, 10)
    assert find_nearest_accessible_point(grid, (0, 3)) == (0, 2)


def test_distance_is_measured_from_reference():
    grid = build_navigable_grid(make_plan((2, 2, CellType.SHELF)), 10, 10)

    assert find_nearest_accessible_point(grid, (2, 2), reference=(9, 9)) == (3, 2)


def test_boxed_in_shelf_is_unreachable():
    plan = make_plan(
        (5, 5, CellType.SHELF),
        (4, 5, CellType.OBSTACLE),
        (6, 5, CellType.OBSTACLE),
        (5, 4, CellType.OBSTACLE),
        (5, 6, CellType.OBSTACLE),
    )
    grid = build_navigable_grid(plan, 10, 10)

    with pytest.raises(UnreachableShelfError) as exc_info:
        find_nearest_accessible_point(grid, (5, 5), product_id="milk")

    assert exc_info.value.product_id == "milk"
    assert exc_info.value.location == (5, 5)


def test_resolve_access_points_keeps_order_and_labels():
    plan = make_plan((2, 2, CellType.SHELF), (2, 5, CellType.SHELF))
    grid = build_navigable_grid(plan, 10, 10)

    points = resolve_access_points(
        grid, [ShelfTarget("bread", (2, 5)), ShelfTarget("eggs", (2, 2))]
    )

    assert [(p.product_id, p.coords) for p in points] == [
        ("bread", (2, 4)),
        ("eggs", (1, 2)),
    ]


def test_stored_labels_are_understood():
    plan = FloorPlan.from_items(
        "store-1",
        [
            {"x": 0, "y": 0, "type": "Entrada"},
            {"x": 1, "y": 1, "type": "Prateleira"},
            {"x": 2, "y": 2, "type": "Frios"},
            {"x": 3, "y": 3, "type": "Caixa"},
            {"x": 4, "y": 4, "type": "Obstáculo"},
            {"x": 5, "y": 5, "type": "shelf"},
        ],
    )

    assert [cell.cell_type for cell in plan.cells] == [
        CellType.ENTRANCE,
        CellType.SHELF,
        CellType.FRIDGE,
        CellType.CHECKOUT_COUNTER,
        CellType.OBSTACLE,
        CellType.SHELF,
    ]
    assert plan.to_items()[0] == {"x": 0, "y": 0, "type": "entrance"}


def test_unknown_cell_label_is_rejected():
    with pytest.raises(ValueError):
        CellType.parse("Banheiro")


def test_grid_from_array_is_a_copy():
    walkable = np.ones((3, 3), dtype=bool)
    grid = NavigableGrid(walkable)
    walkable[1, 1] = False

    assert grid.is_walkable(1, 1)
