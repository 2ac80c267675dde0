# api/v1/schemas/suggest.py
from __future__ import annotations
from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel

from core.models import ItemType


class DailyCount(BaseModel):
    date: str          # YYYY-MM-DD
    item_type: ItemType
    count: int


class MostSelected(BaseModel):
    item_id: int
    selection_count: int
    last_selected: datetime


class SelectionStats(BaseModel):
    daily_counts: List[DailyCount]
    totals: Dict[str, int]
    most_selected_meals: List[MostSelected]
    most_selected_restaurants: List[MostSelected]


class DeletedCount(BaseModel):
    deleted_count: int
