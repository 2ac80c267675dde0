"""Re-export individual schema modules for easy imports."""

from .common import ApiResponse, Pagination
from .prefs import UserPrefsIn, UserPrefsOut
from .suggest import DailyCount, DeletedCount, MostSelected, SelectionStats

__all__ = [
    "ApiResponse",
    "Pagination",
    "UserPrefsIn",
    "UserPrefsOut",
    "DailyCount",
    "DeletedCount",
    "MostSelected",
    "SelectionStats",
]
