"""
Route planning failures.

Every failure aborts a single planning request and is reported to the caller
unchanged. The web layer maps these to user-facing messages / HTTP statuses.
"""

from typing import Optional, Tuple


class RoutePlanningError(Exception):
    """Base class for every failure raised by the route planner"""
    pass


class FloorPlanNotFoundError(RoutePlanningError):
    """Raised when the store has no registered floor plan (or it has no cells)"""

    def __init__(self, store_id: str):
        self.store_id = store_id
        super().__init__(f"Store '{store_id}' has no registered floor plan")


class EntranceNotFoundError(RoutePlanningError):
    """Raised when the floor plan has no entrance cell"""

    def __init__(self, store_id: Optional[str] = None):
        self.store_id = store_id
        super().__init__(f"No entrance registered for store '{store_id}'")


class ProductLocationMissingError(RoutePlanningError):
    """Raised when a product on the shopping list has no shelf location"""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' has no registered shelf location")


class UnreachableShelfError(RoutePlanningError):
    """Raised when a shelf has no walkable 4-neighbour to stand on"""

    def __init__(self, location: Tuple[int, int], product_id: Optional[str] = None):
        self.location = location
        self.product_id = product_id
        super().__init__(
            f"Unreachable shelf location {location} for product '{product_id}'"
        )


class NoFeasibleRouteError(RoutePlanningError):
    """Raised when no visiting order yields a finite total path length"""
    pass


class CellOutOfBoundsError(RoutePlanningError):
    """Raised when a registered cell lies outside the grid"""

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        super().__init__(
            f"Cell ({x}, {y}) is outside the {width}x{height} store grid"
        )


class ShoppingListTooLargeError(RoutePlanningError):
    """Raised when the shopping list exceeds the permutation search cap"""

    def __init__(self, item_count: int, max_items: int):
        self.item_count = item_count
        self.max_items = max_items
        super().__init__(
            f"Shopping list has {item_count} located products; "
            f"route search supports at most {max_items}"
        )
