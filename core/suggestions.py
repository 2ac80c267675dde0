"""
core/suggestions.py
────────────────────────────────────────────────────────────────────────
Everything that turns a user's catalogue into "what to eat":

  • get_random_suggestion   → one meal *or* restaurant (preview only)
  • pick_random             → same, plus a history entry
  • get_diverse_suggestions → K suggestions without repeats
  • get_time_based_suggestion
  • get_personalized_suggestions / get_quick_suggestions

The service only talks to the two store protocols below, so tests can
swap in in-memory fakes and a seeded RNG.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from config import settings
from core.models import (
    ItemType,
    Meal,
    PersonalizedSuggestions,
    QuickSuggestions,
    Restaurant,
    SearchFilters,
    SelectionEntry,
    SelectionOptions,
    Suggestion,
    UserPreferences,
    utcnow,
)
from core.random_selection import select_random

_LOG = logging.getLogger(__name__)

ExcludeSet = set[Tuple[str, int]]

# (first hour, end hour exclusive, tag)
MEAL_TIME_BUCKETS: tuple[tuple[int, int, str], ...] = (
    (6, 10, "breakfast"),
    (11, 14, "lunch"),
    (17, 21, "dinner"),
)


def meal_time_tag(hour: int) -> str | None:
    for start, end, tag in MEAL_TIME_BUCKETS:
        if start <= hour < end:
            return tag
    return None


# ───────────────────────── store protocols ─────────────────────────
class CandidateStore(Protocol):
    async def find_meals(
        self, user_id: int, filters: SearchFilters, limit: int
    ) -> List[Meal]: ...

    async def find_restaurants(
        self, user_id: int, filters: SearchFilters, limit: int
    ) -> List[Restaurant]: ...

    async def get_preferences(self, user_id: int) -> UserPreferences: ...


class HistoryStore(Protocol):
    async def record(self, user_id: int, item_type: ItemType, item_id: int) -> SelectionEntry: ...

    async def recent_item_ids(self, user_id: int, item_type: ItemType, days: int) -> set[int]: ...

    async def entries_since(self, user_id: int, since: datetime | None) -> List[SelectionEntry]: ...

    async def list_page(self, user_id: int, page: int, limit: int) -> tuple[List[SelectionEntry], int]: ...

    async def delete_by_user(self, user_id: int) -> int: ...

    async def delete_older_than(self, days: int) -> int: ...


# ───────────────────────────── service ─────────────────────────────
class SuggestionService:
    def __init__(
        self,
        candidates: CandidateStore,
        history: HistoryStore,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
        candidate_limit: int | None = None,
    ) -> None:
        self._candidates = candidates
        self._history = history
        self._rng = rng or random.Random()
        # local wall clock, only used for meal-time buckets
        self._clock = clock
        self._limit = candidate_limit or settings.candidate_limit

    # ───────────────────────────── pools ──────────────────────────── #
    async def _pool(
        self, user_id: int, item_type: ItemType, filters: SearchFilters
    ) -> list[Meal] | list[Restaurant]:
        if item_type == "meal":
            return await self._candidates.find_meals(user_id, filters, self._limit)
        return await self._candidates.find_restaurants(user_id, filters, self._limit)

    async def _suggest_from(
        self,
        user_id: int,
        item_type: ItemType,
        options: SelectionOptions,
        exclude: Iterable[Tuple[str, int]] = (),
    ) -> Suggestion | None:
        pool = await self._pool(user_id, item_type, options.filters)
        if not pool:
            return None

        recent = await self._history.recent_item_ids(
            user_id, item_type, options.exclude_recent_days
        )
        excluded = set(recent) | {item_id for t, item_id in exclude if t == item_type}

        item = select_random(pool, excluded, options.weight_favorites, self._rng)
        if item is None:
            return None
        return Suggestion(type=item_type, **{item_type: item})

    # ─────────────────────────── dispatcher ───────────────────────── #
    async def get_random_suggestion(
        self,
        user_id: int,
        options: SelectionOptions | None = None,
        exclude: Iterable[Tuple[str, int]] = (),
    ) -> Suggestion | None:
        """
        Preview one suggestion. Never writes history.

        An unpinned request flips a fair coin for the first pool and
        falls back to the other pool when the first one is empty.
        """
        options = options or SelectionOptions()
        exclude = tuple(exclude)

        if options.type is not None:
            return await self._suggest_from(user_id, options.type, options, exclude)

        order: list[ItemType] = ["meal", "restaurant"]
        if self._rng.random() < 0.5:
            order.reverse()

        for item_type in order:
            suggestion = await self._suggest_from(user_id, item_type, options, exclude)
            if suggestion is not None:
                return suggestion
        return None

    async def record_selection(
        self, user_id: int, item_type: ItemType, item_id: int
    ) -> SelectionEntry:
        entry = await self._history.record(user_id, item_type, item_id)
        _LOG.info("user %s picked %s #%s", user_id, item_type, item_id)
        return entry

    async def pick_random(
        self, user_id: int, options: SelectionOptions | None = None
    ) -> Suggestion | None:
        suggestion = await self.get_random_suggestion(user_id, options)
        if suggestion is not None:
            await self.record_selection(user_id, suggestion.type, suggestion.item.id)
        return suggestion

    # ─────────────────────────── diversity ────────────────────────── #
    async def get_diverse_suggestions(
        self,
        user_id: int,
        count: int = 3,
        options: SelectionOptions | None = None,
    ) -> list[Suggestion]:
        options = options or SelectionOptions()
        seen: ExcludeSet = set()
        out: list[Suggestion] = []
        misses = 0
        max_iterations = max(count * 3, count + 5)

        for _ in range(max_iterations):
            if len(out) >= count or misses >= 2:
                break
            suggestion = await self.get_random_suggestion(user_id, options, seen)
            if suggestion is None:
                misses += 1
                continue
            misses = 0
            if suggestion.key in seen:
                continue
            seen.add(suggestion.key)
            out.append(suggestion)

        _LOG.debug("diverse: %d/%d suggestions for user %s", len(out), count, user_id)
        return out

    # ─────────────────────────── time-based ───────────────────────── #
    async def get_time_based_suggestion(self, user_id: int) -> Suggestion | None:
        options = SelectionOptions(
            exclude_recent_days=settings.default_exclude_recent_days,
            weight_favorites=True,
        )
        tag = meal_time_tag(self._clock().hour)
        if tag is not None:
            tagged = options.model_copy(
                update={"filters": SearchFilters(tag_names=[tag])}
            )
            suggestion = await self.get_random_suggestion(user_id, tagged)
            if suggestion is not None:
                return suggestion
            _LOG.debug("nothing tagged %r for user %s, falling back", tag, user_id)

        return await self.get_random_suggestion(user_id, options)

    # ───────────────────────── personalized ───────────────────────── #
    async def get_personalized_suggestions(
        self, user_id: int, limit: int = 5
    ) -> PersonalizedSuggestions:
        prefs = await self._candidates.get_preferences(user_id)

        meal_filters = SearchFilters(
            cuisine_type=prefs.preferred_cuisine_type,
            difficulty_level=prefs.preferred_difficulty_level,
            prep_time_max=prefs.max_prep_time,
        )
        restaurant_filters = SearchFilters(
            cuisine_type=prefs.preferred_cuisine_type,
            price_range=prefs.preferred_price_range,
            rating_min=prefs.min_rating,
        )

        meals = await self._candidates.find_meals(
            user_id, meal_filters, limit
        )
        restaurants = await self._candidates.find_restaurants(
            user_id, restaurant_filters, limit
        )
        return PersonalizedSuggestions(meals=meals, restaurants=restaurants)

    async def get_quick_suggestions(self, user_id: int) -> QuickSuggestions:
        days = settings.default_exclude_recent_days
        quick_meal = await self.get_random_suggestion(
            user_id,
            SelectionOptions(
                exclude_recent_days=days,
                type="meal",
                filters=SearchFilters(prep_time_max=30, difficulty_level="easy"),
            ),
        )
        favorite_restaurant = await self.get_random_suggestion(
            user_id,
            SelectionOptions(
                exclude_recent_days=days,
                type="restaurant",
                filters=SearchFilters(is_favorite=True),
            ),
        )
        return QuickSuggestions(
            quick_meal=quick_meal,
            favorite_restaurant=favorite_restaurant,
            random_suggestion=await self.get_random_suggestion(
                user_id, SelectionOptions(exclude_recent_days=days)
            ),
            time_based_suggestion=await self.get_time_based_suggestion(user_id),
        )

    # ──────────────────────────── history ─────────────────────────── #
    async def history_entries(
        self, user_id: int, since: Optional[datetime] = None
    ) -> list[SelectionEntry]:
        return await self._history.entries_since(user_id, since)

    async def history_page(
        self, user_id: int, page: int = 1, limit: int = 50
    ) -> tuple[list[SelectionEntry], int]:
        return await self._history.list_page(user_id, page, limit)

    async def clear_history(self, user_id: int) -> int:
        deleted = await self._history.delete_by_user(user_id)
        _LOG.info("cleared %d history entries for user %s", deleted, user_id)
        return deleted
