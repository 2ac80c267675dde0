from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .meal import Tag

PriceRange = Literal["$", "$$", "$$$", "$$$$"]


class Restaurant(BaseModel):
    id: int
    user_id: int
    name: str
    cuisine_type: str | None = None
    address: str | None = None
    phone: str | None = None
    price_range: PriceRange | None = None
    is_favorite: bool = False
    rating: float | None = Field(None, ge=0, le=5)
    created_at: datetime | None = None
    tags: list[Tag] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
