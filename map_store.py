"""
Map store adapters.

The planner only needs `get_floor_plan(store_id)`. Stores register or
replace their floor plan through `save_floor_plan`.

Implementations:
- InMemoryMapStore: dict backed, for tests and scripts
- SqlMapStore: SQLAlchemy backed (store_maps / map_cells tables)

get_map_store() builds the SQL store from DATABASE_URL.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from database import DatabaseManager
from models import MapCell, StoreMap
from route_config import PlannerSettings, load_settings
from store_layout import Cell, CellType, FloorPlan

logger = logging.getLogger(__name__)


class MapStore(ABC):
    """Source of store floor plans"""

    @abstractmethod
    async def get_floor_plan(self, store_id: str) -> Optional[FloorPlan]:
        """Return the store's floor plan, or None if none is registered."""

    @abstractmethod
    async def save_floor_plan(self, floor_plan: FloorPlan) -> None:
        """Create the store's floor plan or replace its cells."""


class InMemoryMapStore(MapStore):

    def __init__(self, floor_plans: Optional[Dict[str, FloorPlan]] = None):
        self._floor_plans: Dict[str, FloorPlan] = dict(floor_plans or {})

    async def get_floor_plan(self, store_id: str) -> Optional[FloorPlan]:
        return self._floor_plans.get(store_id)

    async def save_floor_plan(self, floor_plan: FloorPlan) -> None:
        self._floor_plans[floor_plan.store_id] = floor_plan


class SqlMapStore(MapStore):
    """
    Floor plans persisted with SQLAlchemy.

    Queries are blocking, so they run in a worker thread.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def get_floor_plan(self, store_id: str) -> Optional[FloorPlan]:
        return await asyncio.to_thread(self.load, store_id)

    async def save_floor_plan(self, floor_plan: FloorPlan) -> None:
        await asyncio.to_thread(self.store, floor_plan)

    def load(self, store_id: str) -> Optional[FloorPlan]:
        with self.db_manager.session_scope() as session:
            store_map = self._find(session, store_id)
            if store_map is None:
                logger.info(f"No floor plan registered for store {store_id}")
                return None

            cells = [
                Cell(x=row.x, y=row.y, cell_type=CellType.parse(row.cell_type))
                for row in store_map.cells
            ]
            return FloorPlan(store_id=store_id, cells=cells)

    def store(self, floor_plan: FloorPlan) -> None:
        with self.db_manager.session_scope() as session:
            store_map = self._find(session, floor_plan.store_id)
            if store_map is None:
                store_map = StoreMap(store_id=floor_plan.store_id)
                session.add(store_map)
            else:
                # Flush the removals so positions can be reused
                store_map.cells.clear()
                session.flush()
                store_map.updated_at = datetime.utcnow()

            store_map.cells = [
                MapCell(
                    position=position,
                    x=cell.x,
                    y=cell.y,
                    cell_type=cell.cell_type.value if cell.cell_type else None,
                )
                for position, cell in enumerate(floor_plan.cells)
            ]
            logger.info(
                f"Saved floor plan for store {floor_plan.store_id} "
                f"({len(floor_plan.cells)} cells)"
            )

    @staticmethod
    def _find(session: Session, store_id: str) -> Optional[StoreMap]:
        return session.query(StoreMap).filter(StoreMap.store_id == store_id).one_or_none()


def get_map_store(settings: Optional[PlannerSettings] = None) -> SqlMapStore:
    """
    Build the SQL map store for the configured database.
    Creates the tables if they do not exist yet.
    """
    settings = settings or load_settings()

    db_manager = DatabaseManager(settings.database_url)
    db_manager.init_db()
    return SqlMapStore(db_manager)
