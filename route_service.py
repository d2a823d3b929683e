"""
Route service - planning entry point for the web layer

- Validates floor plan and shopping list payloads (pydantic)
- Fetches the store's floor plan from the map store
- Runs the planning pipeline:
  build grid -> locate entrance -> resolve access points -> optimize order -> assemble route

Every stage failure propagates unchanged (see route_errors). Authentication,
response encryption and HTTP status mapping belong to the web layer.
"""

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from map_store import MapStore
from route_config import PlannerSettings, load_settings
from route_errors import (
    CellOutOfBoundsError,
    FloorPlanNotFoundError,
    ProductLocationMissingError,
    ShoppingListTooLargeError,
)
from solver import RoutePlan, assemble_route, optimize_visit_order
from store_layout import (
    ACCESS_REFERENCE_POINT,
    Cell,
    CellType,
    FloorPlan,
    ShelfTarget,
    build_navigable_grid,
    find_entrance,
    resolve_access_points,
)

logger = logging.getLogger(__name__)


# --------------------- Pydantic models ---------------------


class MapCellPayload(BaseModel):
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    cell_type: Optional[CellType] = Field(None, alias="type")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("cell_type", mode="before")
    @classmethod
    def _parse_cell_type(cls, value):
        return CellType.parse(value)


class FloorPlanPayload(BaseModel):
    items: List[MapCellPayload]

    def to_floor_plan(self, store_id: str) -> FloorPlan:
        cells = [Cell(x=item.x, y=item.y, cell_type=item.cell_type) for item in self.items]
        return FloorPlan(store_id=store_id, cells=cells)


class ShelfLocation(BaseModel):
    x: Optional[int] = None
    y: Optional[int] = None


class ProductPayload(BaseModel):
    product_id: str = Field(..., alias="_id")
    name: Optional[str] = None
    location: Optional[ShelfLocation] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ShoppingListItem(BaseModel):
    product: ProductPayload
    quantity: int = 1

    model_config = ConfigDict(extra="ignore")


class ShoppingListPayload(BaseModel):
    products: List[ShoppingListItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def shelf_targets(self) -> List[ShelfTarget]:
        """One ShelfTarget per listed product; quantities do not affect the walk."""
        targets = []
        for item in self.products:
            location = item.product.location
            if location is None or location.x is None or location.y is None:
                coords = None
            else:
                coords = (location.x, location.y)
            targets.append(ShelfTarget(product_id=item.product.product_id, location=coords))
        return targets


# --------------------- Planning pipeline ---------------------


def _check_targets(targets: List[ShelfTarget], settings: PlannerSettings) -> None:
    for target in targets:
        if target.location is None:
            raise ProductLocationMissingError(target.product_id)

    if len(targets) > settings.max_items:
        raise ShoppingListTooLargeError(len(targets), settings.max_items)


def _check_bounds(targets: List[ShelfTarget], settings: PlannerSettings) -> None:
    for target in targets:
        x, y = target.location
        if not (0 <= x < settings.grid_width and 0 <= y < settings.grid_height):
            raise CellOutOfBoundsError(x, y, settings.grid_width, settings.grid_height)


def plan_route(
    floor_plan: Optional[FloorPlan],
    targets: List[ShelfTarget],
    settings: Optional[PlannerSettings] = None,
) -> RoutePlan:
    """
    Plan the shortest walk through the store for a list of shelf targets.

    Args:
        floor_plan: The store's FloorPlan (None if the store has none)
        targets: ShelfTarget per requested product
        settings: PlannerSettings, defaults used if omitted

    Returns:
        RoutePlan

    Raises:
        RoutePlanningError subclasses, unchanged from the failing stage
    """
    settings = settings or PlannerSettings()

    if floor_plan is None or floor_plan.is_empty():
        raise FloorPlanNotFoundError(floor_plan.store_id if floor_plan else "unknown")

    _check_targets(targets, settings)

    grid = build_navigable_grid(floor_plan, settings.grid_width, settings.grid_height)
    entrance = find_entrance(floor_plan)
    logger.info(f"Store {floor_plan.store_id}: entrance at {entrance}, {len(targets)} products")

    _check_bounds(targets, settings)
    access_points = resolve_access_points(grid, targets, reference=ACCESS_REFERENCE_POINT)

    visit_order = optimize_visit_order(
        grid,
        entrance,
        access_points,
        return_trip=settings.return_trip,
        allow_diagonal=settings.allow_diagonal,
    )
    route = assemble_route(
        grid,
        entrance,
        visit_order.stops,
        allow_diagonal=settings.allow_diagonal,
    )

    return RoutePlan(
        store_id=floor_plan.store_id,
        entrance=entrance,
        visit_order=visit_order,
        route=route,
    )


async def compute_route(
    store_id: str,
    shopping_list: Union[ShoppingListPayload, dict],
    map_store: MapStore,
    settings: Optional[PlannerSettings] = None,
) -> RoutePlan:
    """
    Plan a shopper's route through a store.

    The floor plan fetch is the only await; the pipeline itself runs to
    completion without yielding.

    Args:
        store_id: Store identifier
        shopping_list: ShoppingListPayload or its raw dict form
            {"products": [{"product": {"_id": ..., "location": {"x": .., "y": ..}}, "quantity": n}]}
        map_store: MapStore holding the store's floor plan
        settings: PlannerSettings, read from the environment if omitted

    Returns:
        RoutePlan

    Raises:
        FloorPlanNotFoundError: Store has no floor plan
        ProductLocationMissingError: A product has no shelf location
        EntranceNotFoundError: Floor plan has no entrance
        UnreachableShelfError: A shelf has no walkable neighbour
        NoFeasibleRouteError: No visiting order reaches every shelf
    """
    settings = settings or load_settings()

    if not isinstance(shopping_list, ShoppingListPayload):
        shopping_list = ShoppingListPayload.model_validate(shopping_list)

    floor_plan = await map_store.get_floor_plan(store_id)
    if floor_plan is None:
        raise FloorPlanNotFoundError(store_id)

    return plan_route(floor_plan, shopping_list.shelf_targets(), settings)


async def register_floor_plan(
    store_id: str,
    payload: Union[FloorPlanPayload, dict],
    map_store: MapStore,
) -> FloorPlan:
    """Create or replace a store's floor plan from its payload ({"items": [{x, y, type}, ...]})."""
    if not isinstance(payload, FloorPlanPayload):
        payload = FloorPlanPayload.model_validate(payload)

    floor_plan = payload.to_floor_plan(store_id)
    await map_store.save_floor_plan(floor_plan)
    return floor_plan
