"""
Route Solver - Optimal Visiting Order and Route Assembly

This module implements the part of the planner that decides the walk.

Specifications:
- Cost Formula: Total Cost = sum over legs of the walked-cell count of the leg
- Logic: Brute force over every permutation of the access points
- Unreachable legs make an ordering infinitely expensive; it is abandoned
- Ties keep the first ordering found (strict < comparison)
- Output: Route of labeled legs, recomputed for the winning order

The search is O(n! * pathfinding); it is meant for human-sized shopping lists.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from itertools import permutations
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from pathfinder import find_path, path_cost
from route_errors import NoFeasibleRouteError
from store_layout import AccessPoint, Coord, NavigableGrid

logger = logging.getLogger(__name__)

PathFinder = Callable[..., List[Coord]]


@dataclass
class Leg:
    """One continuous walked segment ending at a stop."""
    product_id: Optional[str]  # None for the walk back to the entrance
    waypoints: List[Coord] = field(default_factory=list)

    @property
    def start(self) -> Coord:
        return self.waypoints[0]

    @property
    def end(self) -> Coord:
        return self.waypoints[-1]

    def __len__(self) -> int:
        return len(self.waypoints)


@dataclass
class Route:
    """Ordered legs of a planned walk; the first leg starts at the entrance."""
    legs: List[Leg] = field(default_factory=list)

    @property
    def product_order(self) -> List[Optional[str]]:
        return [leg.product_id for leg in self.legs]

    def waypoints(self) -> List[Coord]:
        """All waypoints, legs concatenated in order."""
        return [point for leg in self.legs for point in leg.waypoints]

    def to_list(self) -> List[List[Dict]]:
        """Legs as lists of {"x", "y", "productId"} dicts (the web layer's shape)."""
        return [
            [{"x": x, "y": y, "productId": leg.product_id} for x, y in leg.waypoints]
            for leg in self.legs
        ]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per waypoint: leg, step, x, y, product_id."""
        rows = [
            {"leg": leg_index, "step": step, "x": x, "y": y, "product_id": leg.product_id}
            for leg_index, leg in enumerate(self.legs)
            for step, (x, y) in enumerate(leg.waypoints)
        ]
        return pd.DataFrame(rows, columns=["leg", "step", "x", "y", "product_id"])


@dataclass
class VisitOrder:
    """Winning visiting order from the permutation search."""
    stops: List[AccessPoint]  # ends with the entrance on a return trip
    total_cost: float
    permutations_evaluated: int


@dataclass
class RoutePlan:
    """Final result of a planning request."""
    store_id: str
    entrance: Coord
    visit_order: VisitOrder
    route: Route

    @property
    def total_cost(self) -> float:
        return self.visit_order.total_cost

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "store_id": self.store_id,
            "entrance": {"x": self.entrance[0], "y": self.entrance[1]},
            "stops": [
                {"x": stop.x, "y": stop.y, "productId": stop.product_id}
                for stop in self.visit_order.stops
            ],
            "total_cost": self.total_cost,
            "permutations_evaluated": self.visit_order.permutations_evaluated,
            "legs": self.route.to_list(),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to formatted JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class _LegCostCache:
    """Walked-cell counts between stops, computed once per pair within one search."""

    def __init__(self, grid: NavigableGrid, path_finder: PathFinder, allow_diagonal: bool):
        self.grid = grid
        self.path_finder = path_finder
        self.allow_diagonal = allow_diagonal
        self._costs: Dict[Tuple[Coord, Coord], float] = {}

    def cost(self, origin: Coord, destination: Coord) -> float:
        key = (origin, destination)
        if key not in self._costs:
            path = self.path_finder(
                self.grid, origin, destination, allow_diagonal=self.allow_diagonal
            )
            self._costs[key] = path_cost(path)
        return self._costs[key]


def evaluate_order(
    order: Tuple[AccessPoint, ...],
    entrance: Coord,
    return_trip: bool,
    leg_costs: _LegCostCache,
) -> float:
    """
    Total walked cells for one visiting order.

    Returns:
        Total cost, or math.inf as soon as one leg is unreachable
    """
    total = 0.0
    current = entrance

    for stop in order:
        cost = leg_costs.cost(current, stop.coords)
        if math.isinf(cost):
            return math.inf
        total += cost
        current = stop.coords

    if return_trip:
        cost = leg_costs.cost(current, entrance)
        if math.isinf(cost):
            return math.inf
        total += cost

    return total


def optimize_visit_order(
    grid: NavigableGrid,
    entrance: Coord,
    access_points: List[AccessPoint],
    return_trip: bool = False,
    allow_diagonal: bool = True,
    path_finder: PathFinder = find_path,
) -> VisitOrder:
    """
    Find the visiting order with the smallest total path length.

    Every permutation of the access points is scored by walking it from the
    entrance (and back, on a return trip). The first strictly cheapest
    ordering wins.

    Args:
        grid: NavigableGrid
        entrance: Entrance cell
        access_points: One AccessPoint per product, in submission order
        return_trip: Add a final leg back to the entrance
        allow_diagonal: Passed through to the pathfinder
        path_finder: Segment pathfinder, find_path by default

    Returns:
        VisitOrder with the winning stops and their total cost

    Raises:
        NoFeasibleRouteError: If every ordering has an unreachable leg
    """
    leg_costs = _LegCostCache(grid, path_finder, allow_diagonal)

    best_order: Optional[Tuple[AccessPoint, ...]] = None
    best_cost = math.inf
    evaluated = 0

    for order in permutations(access_points):
        evaluated += 1
        total = evaluate_order(order, entrance, return_trip, leg_costs)
        if total < best_cost:
            best_cost = total
            best_order = order

    if best_order is None:
        raise NoFeasibleRouteError(
            f"No visiting order reaches all {len(access_points)} stops "
            f"from entrance {entrance}"
        )

    stops = list(best_order)
    if return_trip:
        stops.append(AccessPoint(x=entrance[0], y=entrance[1], product_id=None))

    logger.info(
        f"Best of {evaluated} orderings costs {best_cost:.0f} cells: "
        f"{[stop.product_id for stop in stops]}"
    )
    return VisitOrder(stops=stops, total_cost=best_cost, permutations_evaluated=evaluated)


def assemble_route(
    grid: NavigableGrid,
    entrance: Coord,
    stops: List[AccessPoint],
    allow_diagonal: bool = True,
    path_finder: PathFinder = find_path,
) -> Route:
    """
    Walk the chosen stops again and build the labeled route.

    Each leg is searched afresh from the previous stop, starting at the
    entrance, and carries the product id of the stop it ends at.

    Raises:
        NoFeasibleRouteError: If a leg of the chosen order has no path
    """
    legs = []
    current = entrance

    for stop in stops:
        waypoints = path_finder(grid, current, stop.coords, allow_diagonal=allow_diagonal)
        if not waypoints:
            logger.warning(f"Leg {current} -> {stop.coords} became unreachable during assembly")
            raise NoFeasibleRouteError(
                f"No path from {current} to {stop.coords} for product '{stop.product_id}'"
            )
        legs.append(Leg(product_id=stop.product_id, waypoints=waypoints))
        current = stop.coords

    return Route(legs=legs)


# ============================================================================
# UTILITY FUNCTION: Display results in a human-readable format
# ============================================================================

def print_route_plan(plan: RoutePlan, grid: Optional[NavigableGrid] = None) -> None:
    """Pretty-print a route plan.

    Args:
        plan: RoutePlan to show
        grid: If given, draw the route over the store grid
    """
    print("\n" + "=" * 60)
    print(f"SHOPPING ROUTE - store {plan.store_id}")
    print("=" * 60)

    print(f"\nEntrance: {plan.entrance}")
    print(f"Total walked cells: {plan.total_cost:.0f}")
    print(f"Orderings analyzed: {plan.visit_order.permutations_evaluated}")

    print("\nLegs:")
    print("-" * 60)
    for index, leg in enumerate(plan.route.legs, start=1):
        label = leg.product_id if leg.product_id is not None else "ENTRANCE"
        path = " -> ".join(f"({x},{y})" for x, y in leg.waypoints)
        print(f"  {index:2}. {label:15} {path}")

    if grid is not None:
        print("\n" + grid.render(entrance=plan.entrance, waypoints=plan.route.waypoints()))

    print("=" * 60)
