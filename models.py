"""
SQLAlchemy ORM Models for the store map database

Tables:
- store_maps: One floor plan per store
- map_cells: Registered cells of a floor plan, kept in registration order
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class StoreMap(Base):
    """A store's floor plan"""
    __tablename__ = 'store_maps'

    id = Column(Integer, primary_key=True)
    store_id = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    cells = relationship(
        "MapCell",
        back_populates="store_map",
        cascade="all, delete-orphan",
        order_by="MapCell.position",
    )

    def __repr__(self):
        return f"<StoreMap {self.store_id}>"


class MapCell(Base):
    """A registered cell (entrance, shelf, fridge, checkout counter, obstacle)"""
    __tablename__ = 'map_cells'
    __table_args__ = (
        UniqueConstraint('map_id', 'position', name='unique_map_position'),
        Index('idx_map_id', 'map_id'),
    )

    id = Column(Integer, primary_key=True)
    map_id = Column(Integer, ForeignKey('store_maps.id'), nullable=False)
    position = Column(Integer, nullable=False)  # registration order
    x = Column(Integer, nullable=False)
    y = Column(Integer, nullable=False)
    cell_type = Column(String(32))  # CellType value, e.g. "entrance", "shelf"

    # Relationships
    store_map = relationship("StoreMap", back_populates="cells")

    def __repr__(self):
        return f"<MapCell ({self.x}, {self.y}) {self.cell_type}>"
