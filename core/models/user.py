from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .meal import Difficulty
from .restaurant import PriceRange


class UserPreferences(BaseModel):
    """Stored as a JSON document on the `users.preferences` column."""

    preferred_cuisine_type: str | None = Field(None, max_length=50)
    preferred_difficulty_level: Difficulty | None = None
    max_prep_time: int | None = Field(None, ge=1, le=1440)
    preferred_price_range: PriceRange | None = None
    min_rating: float | None = Field(None, ge=0, le=5)

    model_config = ConfigDict(extra="ignore")
