from __future__ import annotations
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict

ItemType = Literal["meal", "restaurant"]
ITEM_TYPES: tuple[ItemType, ItemType] = ("meal", "restaurant")


def utcnow() -> datetime:
    """Naive UTC, matching what the history table stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SelectionEntry(BaseModel):
    """One confirmed pick. Never mutated once written."""

    id: int
    user_id: int
    item_type: ItemType
    item_id: int
    selected_at: datetime

    model_config = ConfigDict(from_attributes=True)
