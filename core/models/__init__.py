from .history import ITEM_TYPES, ItemType, SelectionEntry, utcnow
from .meal import Meal, Tag
from .restaurant import Restaurant
from .suggestion import (
    PersonalizedSuggestions,
    QuickSuggestions,
    SearchFilters,
    SelectionOptions,
    Suggestion,
)
from .user import UserPreferences

__all__ = [
    "ITEM_TYPES",
    "ItemType",
    "SelectionEntry",
    "Meal",
    "Tag",
    "Restaurant",
    "PersonalizedSuggestions",
    "QuickSuggestions",
    "SearchFilters",
    "SelectionOptions",
    "Suggestion",
    "UserPreferences",
    "utcnow",
]
