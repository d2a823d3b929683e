"""
Store Layout - floor plans and the navigable grid

This module defines:
1. Floor plan objects (CellType, Cell, FloorPlan) as registered by the store
2. Shopping targets (ShelfTarget) and the walkable stops derived from them (AccessPoint)
3. NavigableGrid: the immutable walkability map used for pathfinding
4. The grid-side planning steps: grid building, entrance lookup and
   nearest-accessible-point resolution

Walkability policy: every registered cell blocks movement except the entrance.
Shelves, fridges, checkout counters and obstacles are all equally impassable;
only unregistered floor and the entrance can be walked on.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from route_errors import (
    CellOutOfBoundsError,
    EntranceNotFoundError,
    UnreachableShelfError,
)

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]  # (x, y)

# Candidate neighbours are always measured from the store origin, not from the
# shopper's position. Output compatibility depends on it.
ACCESS_REFERENCE_POINT: Coord = (0, 0)


# ============================================================================
# STEP 1: FLOOR PLAN
# ============================================================================

class CellType(str, Enum):
    """Kinds of cells a store can register on its floor plan."""
    ENTRANCE = "entrance"
    SHELF = "shelf"
    FRIDGE = "fridge"
    CHECKOUT_COUNTER = "checkoutCounter"
    OBSTACLE = "obstacle"

    @classmethod
    def parse(cls, value) -> Optional["CellType"]:
        """Accept enum members, canonical names, or the labels stored by the map service."""
        if value is None or isinstance(value, cls):
            return value
        label = str(value).strip()
        if label in STORED_CELL_LABELS:
            return STORED_CELL_LABELS[label]
        return cls(label)


# Labels persisted by the existing map service
STORED_CELL_LABELS: Dict[str, CellType] = {
    "Entrada": CellType.ENTRANCE,
    "Prateleira": CellType.SHELF,
    "Frios": CellType.FRIDGE,
    "Caixa": CellType.CHECKOUT_COUNTER,
    "Obstáculo": CellType.OBSTACLE,
}


@dataclass(frozen=True)
class Cell:
    """A registered floor plan cell."""
    x: int
    y: int
    cell_type: Optional[CellType] = None

    @property
    def coords(self) -> Coord:
        return (self.x, self.y)

    @property
    def is_entrance(self) -> bool:
        return self.cell_type == CellType.ENTRANCE


@dataclass
class FloorPlan:
    """
    A store's registered cells.

    Attributes:
        store_id: Store identifier
        cells: Registered cells, in the order the map store returned them
    """
    store_id: str
    cells: List[Cell] = field(default_factory=list)

    @classmethod
    def from_items(cls, store_id: str, items: Iterable[Dict]) -> "FloorPlan":
        """Build a floor plan from stored items: [{"x": 0, "y": 0, "type": "Entrada"}, ...]"""
        cells = [
            Cell(x=int(item["x"]), y=int(item["y"]), cell_type=CellType.parse(item.get("type")))
            for item in items
        ]
        return cls(store_id=store_id, cells=cells)

    def to_items(self) -> List[Dict]:
        return [
            {
                "x": cell.x,
                "y": cell.y,
                "type": cell.cell_type.value if cell.cell_type else None,
            }
            for cell in self.cells
        ]

    def is_empty(self) -> bool:
        return not self.cells


# ============================================================================
# STEP 2: SHOPPING TARGETS
# ============================================================================

@dataclass(frozen=True)
class ShelfTarget:
    """A requested product and the shelf it is registered on."""
    product_id: str
    location: Optional[Coord]


@dataclass(frozen=True)
class AccessPoint:
    """
    A walkable stop on the route.

    product_id is None for the entrance when it closes a return trip.
    """
    x: int
    y: int
    product_id: Optional[str] = None

    @property
    def coords(self) -> Coord:
        return (self.x, self.y)


# ============================================================================
# STEP 3: NAVIGABLE GRID
# ============================================================================

class NavigableGrid:
    """
    Read-only walkability map of a store floor.

    The underlying array is indexed [y, x] and is locked against writes, so
    every search works on the same snapshot and keeps its own bookkeeping.
    """

    def __init__(self, walkable: np.ndarray):
        """
        Args:
            walkable: HxW boolean array, True = walkable
        """
        grid = np.array(walkable, dtype=bool, copy=True)
        grid.flags.writeable = False
        self._walkable = grid

    @property
    def width(self) -> int:
        return self._walkable.shape[1]

    @property
    def height(self) -> int:
        return self._walkable.shape[0]

    @property
    def walkable(self) -> np.ndarray:
        """The read-only walkability array ([y, x])."""
        return self._walkable

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_walkable(self, x: int, y: int) -> bool:
        """Out-of-bounds coordinates are never walkable."""
        return self.is_inside(x, y) and bool(self._walkable[y, x])

    def to_dataframe(self) -> pd.DataFrame:
        """Walkability as a DataFrame: rows are y, columns are x."""
        return pd.DataFrame(
            self._walkable,
            index=pd.RangeIndex(self.height, name="y"),
            columns=pd.RangeIndex(self.width, name="x"),
        )

    def render(
        self,
        entrance: Optional[Coord] = None,
        waypoints: Iterable[Coord] = (),
    ) -> str:
        """
        Text picture of the grid, one row per y.

        '.' floor, '#' blocked, '*' route waypoint, 'E' entrance
        """
        marks = set(waypoints)
        rows = []
        for y in range(self.height):
            row = []
            for x in range(self.width):
                if entrance is not None and (x, y) == entrance:
                    row.append("E")
                elif (x, y) in marks:
                    row.append("*")
                elif self._walkable[y, x]:
                    row.append(".")
                else:
                    row.append("#")
            rows.append("".join(row))
        return "\n".join(rows)

    def __repr__(self):
        return f"<NavigableGrid {self.width}x{self.height}, {int(self._walkable.sum())} walkable>"


def build_navigable_grid(floor_plan: FloorPlan, width: int, height: int) -> NavigableGrid:
    """
    Convert a floor plan into a NavigableGrid.

    Every registered cell that is not the entrance is blocked, untyped cells
    included. Every unregistered cell is walkable.

    Args:
        floor_plan: FloorPlan to convert
        width: Grid width (x range)
        height: Grid height (y range)

    Returns:
        NavigableGrid

    Raises:
        CellOutOfBoundsError: If a registered cell lies outside the grid
    """
    walkable = np.ones((height, width), dtype=bool)

    for cell in floor_plan.cells:
        if not (0 <= cell.x < width and 0 <= cell.y < height):
            raise CellOutOfBoundsError(cell.x, cell.y, width, height)
        if not cell.is_entrance:
            walkable[cell.y, cell.x] = False

    grid = NavigableGrid(walkable)
    logger.info(f"Built {grid!r} for store {floor_plan.store_id}")
    return grid


def find_entrance(floor_plan: FloorPlan) -> Coord:
    """
    Locate the store entrance.

    With several entrances the first one registered wins.

    Raises:
        EntranceNotFoundError: If no cell is an entrance
    """
    entrances = [cell for cell in floor_plan.cells if cell.is_entrance]
    if not entrances:
        raise EntranceNotFoundError(floor_plan.store_id)
    if len(entrances) > 1:
        logger.warning(
            f"Store {floor_plan.store_id} has {len(entrances)} entrances, "
            f"using the first at {entrances[0].coords}"
        )
    return entrances[0].coords


# ============================================================================
# STEP 4: ACCESS POINT RESOLUTION
# ============================================================================

def euclidean_distance(a: Coord, b: Coord) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(dx * dx + dy * dy)


def find_nearest_accessible_point(
    grid: NavigableGrid,
    target: Coord,
    reference: Coord = ACCESS_REFERENCE_POINT,
    product_id: Optional[str] = None,
) -> Coord:
    """
    Find where a shopper stands to reach a shelf.

    A walkable target is returned as is. Otherwise the four neighbours are
    tried in the order up (x-1), down (x+1), left (y-1), right (y+1) and the
    walkable one closest to `reference` wins; on ties the earliest candidate
    is kept.

    Args:
        grid: NavigableGrid
        target: Shelf location (x, y)
        reference: Point candidate distances are measured from
        product_id: Product on the shelf, used for error reporting

    Returns:
        Walkable (x, y)

    Raises:
        UnreachableShelfError: If no neighbour is walkable
    """
    tx, ty = target
    if grid.is_walkable(tx, ty):
        return target

    candidates = [
        (tx - 1, ty),  # up
        (tx + 1, ty),  # down
        (tx, ty - 1),  # left
        (tx, ty + 1),  # right
    ]

    nearest = None
    best_distance = None
    for candidate in candidates:
        if not grid.is_walkable(*candidate):
            continue
        distance = euclidean_distance(reference, candidate)
        if best_distance is None or distance < best_distance:
            best_distance = distance
            nearest = candidate

    if nearest is None:
        raise UnreachableShelfError(target, product_id)

    logger.debug(f"Shelf {target} for product {product_id} accessed from {nearest}")
    return nearest


def resolve_access_points(
    grid: NavigableGrid,
    targets: List[ShelfTarget],
    reference: Coord = ACCESS_REFERENCE_POINT,
) -> List[AccessPoint]:
    """Resolve every shelf target to its access point, preserving list order."""
    access_points = []
    for target in targets:
        x, y = find_nearest_accessible_point(
            grid, target.location, reference=reference, product_id=target.product_id
        )
        access_points.append(AccessPoint(x=x, y=y, product_id=target.product_id))
    return access_points
