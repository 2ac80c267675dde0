from __future__ import annotations

from core.models import UserPreferences


class UserPrefsIn(UserPreferences):
    pass


class UserPrefsOut(UserPreferences):
    user_id: int
