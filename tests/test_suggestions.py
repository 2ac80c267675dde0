"""
Dispatcher / diversity / time-based behaviour of SuggestionService,
run against the in-memory fakes from conftest.
"""
from __future__ import annotations

from collections import Counter
from datetime import timedelta

import pytest

from core.models import SearchFilters, SelectionOptions, UserPreferences
from core.models import utcnow
from core.suggestions import meal_time_tag
from conftest import FakeHistoryStore, make_service, meal, restaurant

MEALS = [meal(1), meal(2), meal(3)]
RESTAURANTS = [restaurant(10, rating=4.0), restaurant(11, rating=4.0)]


# ── dispatcher ───────────────────────────────────────────────────────
async def test_pinned_type_only_uses_that_pool():
    svc, _ = make_service(MEALS, RESTAURANTS)
    for _ in range(20):
        s = await svc.get_random_suggestion(1, SelectionOptions(type="restaurant"))
        assert s.type == "restaurant"
        assert s.restaurant.id in {10, 11}
        assert s.meal is None


async def test_unpinned_type_reaches_both_pools():
    svc, _ = make_service(MEALS, RESTAURANTS)
    types = Counter()
    for _ in range(400):
        types[(await svc.get_random_suggestion(1)).type] += 1
    assert 0.4 < types["meal"] / 400 < 0.6


async def test_unpinned_falls_back_to_other_pool():
    svc, _ = make_service(meals=[], restaurants=RESTAURANTS)
    for _ in range(10):
        assert (await svc.get_random_suggestion(1)).type == "restaurant"


async def test_no_candidates_returns_none():
    svc, _ = make_service()
    assert await svc.get_random_suggestion(1) is None


async def test_filters_pass_through_to_pool():
    svc, _ = make_service(
        [meal(1, cuisine_type="Thai"), meal(2, cuisine_type="Greek")], RESTAURANTS
    )
    opts = SelectionOptions(type="meal", filters=SearchFilters(cuisine_type="Greek"))
    for _ in range(10):
        assert (await svc.get_random_suggestion(1, opts)).meal.id == 2


async def test_request_scoped_exclusions_only_hit_their_type():
    svc, _ = make_service([meal(10)], [restaurant(10)])
    opts = SelectionOptions(type="meal")
    assert await svc.get_random_suggestion(1, opts, {("restaurant", 10)}) is not None
    assert await svc.get_random_suggestion(1, opts, {("meal", 10)}) is None


# ── preview vs pick ──────────────────────────────────────────────────
async def test_preview_never_records_history():
    svc, history = make_service(MEALS, RESTAURANTS)
    for _ in range(5):
        await svc.get_random_suggestion(1)
    assert history.entries == []


async def test_pick_records_exactly_one_entry():
    svc, history = make_service(MEALS, RESTAURANTS)
    picked = await svc.pick_random(1)
    assert len(history.entries) == 1
    entry = history.entries[0]
    assert (entry.item_type, entry.item_id) == picked.key


async def test_pick_then_preview_never_repeats():
    opts = SelectionOptions(exclude_recent_days=1, type="meal")
    for seed in range(25):
        svc, _ = make_service([meal(1), meal(2)], seed=seed)
        picked = await svc.pick_random(1, opts)
        again = await svc.get_random_suggestion(1, opts)
        assert again.meal.id != picked.meal.id


async def test_zero_day_window_ignores_history():
    svc, history = make_service([meal(1)])
    history.add("meal", 1, utcnow())
    opts = SelectionOptions(exclude_recent_days=0)
    assert (await svc.get_random_suggestion(1, opts)).meal.id == 1


async def test_entries_outside_window_do_not_exclude():
    svc, history = make_service([meal(1)])
    history.add("meal", 1, utcnow() - timedelta(days=8))
    assert (await svc.get_random_suggestion(1, SelectionOptions())).meal.id == 1


async def test_all_recent_yields_none_not_fallback():
    svc, history = make_service([meal(1)], [restaurant(2)])
    history.add("meal", 1, utcnow())
    history.add("restaurant", 2, utcnow())
    assert await svc.get_random_suggestion(1) is None


async def test_clearing_history_makes_everything_eligible():
    svc, history = make_service([meal(1)])
    await svc.pick_random(1)
    assert await svc.get_random_suggestion(1) is None

    assert await svc.clear_history(1) == 1
    assert (await svc.get_random_suggestion(1)).meal.id == 1


# ── diversity ────────────────────────────────────────────────────────
async def test_diverse_returns_unique_suggestions():
    svc, _ = make_service([meal(1), meal(2)], [restaurant(1)])
    out = await svc.get_diverse_suggestions(1, 3)
    assert len(out) == 3
    assert len({s.key for s in out}) == 3


async def test_diverse_stops_when_pool_is_exhausted():
    svc, history = make_service([meal(1)], [restaurant(5)])
    out = await svc.get_diverse_suggestions(1, 10)
    assert {s.key for s in out} == {("meal", 1), ("restaurant", 5)}
    assert history.entries == []


async def test_diverse_on_empty_catalog_is_empty():
    svc, _ = make_service()
    assert await svc.get_diverse_suggestions(1, 3) == []


# ── time of day ──────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "hour, tag",
    [(5, None), (6, "breakfast"), (9, "breakfast"), (10, None), (11, "lunch"),
     (13, "lunch"), (14, None), (17, "dinner"), (20, "dinner"), (21, None)],
)
def test_meal_time_buckets(hour, tag):
    assert meal_time_tag(hour) == tag


async def test_time_based_prefers_tagged_items():
    catalog = [meal(1, tags=["breakfast"]), meal(2, tags=["dinner"]), meal(3)]
    for seed in range(10):
        svc, _ = make_service(catalog, hour=8, seed=seed)
        s = await svc.get_time_based_suggestion(1)
        assert s.meal.id == 1


async def test_time_based_can_suggest_tagged_restaurant():
    svc, _ = make_service([meal(1)], [restaurant(2, tags=["Lunch"])], hour=12, seed=1)
    seen = {(await svc.get_time_based_suggestion(1)).key for _ in range(20)}
    assert seen == {("restaurant", 2)}


async def test_time_based_falls_back_when_nothing_tagged():
    svc, _ = make_service([meal(1), meal(2)], hour=19)
    s = await svc.get_time_based_suggestion(1)
    assert s is not None and s.meal.id in {1, 2}


async def test_time_based_outside_meal_times_uses_dispatcher():
    svc, _ = make_service([meal(1, tags=["breakfast"])], hour=3)
    assert (await svc.get_time_based_suggestion(1)).meal.id == 1


# ── personalized / quick ─────────────────────────────────────────────
async def test_personalized_applies_stored_preferences():
    prefs = UserPreferences(preferred_cuisine_type="Thai", min_rating=4.0)
    svc, _ = make_service(
        [meal(1, cuisine_type="Thai"), meal(2, cuisine_type="Greek")],
        [
            restaurant(3, cuisine_type="Thai", rating=4.5),
            restaurant(4, cuisine_type="Thai", rating=3.0),
            restaurant(5, cuisine_type="Greek", rating=5.0),
        ],
        preferences=prefs,
    )
    out = await svc.get_personalized_suggestions(1, limit=5)
    assert [m.id for m in out.meals] == [1]
    assert [r.id for r in out.restaurants] == [3]


async def test_quick_suggestions_shape():
    svc, _ = make_service(
        [meal(1, difficulty_level="easy", prep_time=20), meal(2, prep_time=90)],
        [restaurant(3, favorite=True), restaurant(4)],
    )
    quick = await svc.get_quick_suggestions(1)
    assert quick.quick_meal.meal.id == 1
    assert quick.favorite_restaurant.restaurant.id == 3
    assert quick.random_suggestion is not None
    assert quick.time_based_suggestion is not None


async def test_history_page_is_newest_first():
    history = FakeHistoryStore()
    now = utcnow()
    history.add("meal", 1, now - timedelta(days=2))
    history.add("meal", 2, now)
    svc, _ = make_service(history=history)
    entries, total = await svc.history_page(1, page=1, limit=1)
    assert total == 2
    assert [e.item_id for e in entries] == [2]
