"""
Route planner configuration.

Values come from the environment (optionally a .env file):

    GRID_WIDTH / GRID_HEIGHT   store grid size in cells (default 10x10)
    RETURN_TRIP                walk back to the entrance after the last shelf
    ALLOW_DIAGONAL             diagonal steps when both side cells are free
    MAX_SHOPPING_ITEMS         cap on located products per route search
    DATABASE_URL               map store database (SQLAlchemy URL)
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Reference store layout
DEFAULT_GRID_WIDTH = 10
DEFAULT_GRID_HEIGHT = 10

# 8! orderings is the largest search that finishes interactively
DEFAULT_MAX_SHOPPING_ITEMS = 8

DEFAULT_DATABASE_URL = "sqlite:///localshop.db"


class PlannerSettings(BaseModel):
    grid_width: int = Field(DEFAULT_GRID_WIDTH, gt=0)
    grid_height: int = Field(DEFAULT_GRID_HEIGHT, gt=0)
    return_trip: bool = False
    allow_diagonal: bool = True
    max_items: int = Field(DEFAULT_MAX_SHOPPING_ITEMS, ge=0)
    database_url: str = DEFAULT_DATABASE_URL


_ENV_FIELDS = {
    "GRID_WIDTH": "grid_width",
    "GRID_HEIGHT": "grid_height",
    "RETURN_TRIP": "return_trip",
    "ALLOW_DIAGONAL": "allow_diagonal",
    "MAX_SHOPPING_ITEMS": "max_items",
    "DATABASE_URL": "database_url",
}


def load_settings() -> PlannerSettings:
    """
    Build PlannerSettings from the process environment.

    Unset variables keep their defaults. Values are passed through as
    strings, so a malformed number or flag raises a pydantic ValidationError.

    Returns:
        PlannerSettings
    """
    load_dotenv()

    values = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is not None:
            values[field_name] = raw.strip()

    return PlannerSettings(**values)
