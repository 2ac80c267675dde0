"""Options and results exchanged between the HTTP layer and the engine."""

from __future__ import annotations

from pydantic import BaseModel, Field, PositiveInt

from config import settings

from .history import ItemType
from .meal import Difficulty, Meal
from .restaurant import PriceRange, Restaurant


class SearchFilters(BaseModel):
    # meal-only fields are ignored by the restaurant pool and vice versa
    cuisine_type: str | None = Field(None, max_length=50)
    difficulty_level: Difficulty | None = None
    prep_time_max: int | None = Field(None, ge=1, le=1440)
    price_range: PriceRange | None = None
    rating_min: float | None = Field(None, ge=0, le=5)
    is_favorite: bool | None = None
    tag_ids: list[PositiveInt] = Field(default_factory=list)
    tag_names: list[str] = Field(default_factory=list)
    search: str | None = Field(None, max_length=100)


class SelectionOptions(BaseModel):
    exclude_recent_days: int = Field(
        default_factory=lambda: settings.default_exclude_recent_days, ge=0, le=365
    )
    weight_favorites: bool = True
    type: ItemType | None = None
    filters: SearchFilters = Field(default_factory=SearchFilters)


class Suggestion(BaseModel):
    type: ItemType
    meal: Meal | None = None
    restaurant: Restaurant | None = None

    @property
    def item(self) -> Meal | Restaurant:
        return self.meal if self.type == "meal" else self.restaurant  # type: ignore[return-value]

    @property
    def key(self) -> tuple[str, int]:
        return self.type, self.item.id


class PersonalizedSuggestions(BaseModel):
    meals: list[Meal]
    restaurants: list[Restaurant]


class QuickSuggestions(BaseModel):
    quick_meal: Suggestion | None = None
    favorite_restaurant: Suggestion | None = None
    random_suggestion: Suggestion | None = None
    time_based_suggestion: Suggestion | None = None
