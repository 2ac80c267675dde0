"""
Shared fixtures.

Two layers are exercised:
  • the pure core, against in-memory fake stores and a seeded RNG
  • the HTTP API, against an in-memory sqlite database
"""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")

import itertools
import random
from datetime import datetime, timedelta
from typing import Iterable

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from core import history_stats
from core.models import (
    Meal,
    Restaurant,
    SearchFilters,
    SelectionEntry,
    Tag,
    UserPreferences,
)
from core.models import utcnow
from core.suggestions import SuggestionService
from main import app
from services import db as orm
from services.auth import create_token


# ───────────────────────── builders ────────────────────────────────
_tag_ids = itertools.count(1)


def meal(id: int, *, favorite: bool = False, tags: Iterable[str] = (), **kw) -> Meal:
    return Meal(
        id=id,
        user_id=1,
        name=f"meal-{id}",
        is_favorite=favorite,
        tags=[Tag(id=next(_tag_ids), name=t) for t in tags],
        **kw,
    )


def restaurant(
    id: int, *, rating: float | None = None, favorite: bool = False,
    tags: Iterable[str] = (), **kw,
) -> Restaurant:
    return Restaurant(
        id=id,
        user_id=1,
        name=f"restaurant-{id}",
        rating=rating,
        is_favorite=favorite,
        tags=[Tag(id=next(_tag_ids), name=t) for t in tags],
        **kw,
    )


# ───────────────────────── fake stores ─────────────────────────────
def _matches(item, f: SearchFilters) -> bool:
    if f.cuisine_type and item.cuisine_type != f.cuisine_type:
        return False
    if f.is_favorite is not None and item.is_favorite != f.is_favorite:
        return False
    if f.search and f.search.lower() not in item.name.lower():
        return False
    names = {t.name.lower() for t in item.tags}
    if f.tag_names and not {n.lower() for n in f.tag_names} <= names:
        return False
    if f.tag_ids and not set(f.tag_ids) <= {t.id for t in item.tags}:
        return False
    if isinstance(item, Meal):
        if f.difficulty_level and item.difficulty_level != f.difficulty_level:
            return False
        if f.prep_time_max and (item.prep_time is None or item.prep_time > f.prep_time_max):
            return False
    else:
        if f.price_range and item.price_range != f.price_range:
            return False
        if f.rating_min is not None and (item.rating is None or item.rating < f.rating_min):
            return False
    return True


class FakeCandidateStore:
    def __init__(self, meals=(), restaurants=(), preferences: UserPreferences | None = None):
        self.meals = list(meals)
        self.restaurants = list(restaurants)
        self.preferences = preferences or UserPreferences()

    async def find_meals(self, user_id, filters, limit):
        return [m for m in self.meals if _matches(m, filters)][:limit]

    async def find_restaurants(self, user_id, filters, limit):
        return [r for r in self.restaurants if _matches(r, filters)][:limit]

    async def get_preferences(self, user_id):
        return self.preferences


class FakeHistoryStore:
    def __init__(self, entries: Iterable[SelectionEntry] = ()):
        self.entries = list(entries)
        self._ids = itertools.count(len(self.entries) + 1)

    def add(self, item_type, item_id, selected_at: datetime, user_id: int = 1):
        entry = SelectionEntry(
            id=next(self._ids), user_id=user_id, item_type=item_type,
            item_id=item_id, selected_at=selected_at,
        )
        self.entries.append(entry)
        return entry

    async def record(self, user_id, item_type, item_id):
        return self.add(item_type, item_id, utcnow(), user_id)

    async def recent_item_ids(self, user_id, item_type, days):
        mine = [e for e in self.entries if e.user_id == user_id]
        return history_stats.recent_ids(mine, item_type, days, utcnow())

    async def entries_since(self, user_id, since):
        return [
            e for e in self.entries
            if e.user_id == user_id and (since is None or e.selected_at > since)
        ]

    async def list_page(self, user_id, page, limit):
        mine = sorted(
            (e for e in self.entries if e.user_id == user_id),
            key=lambda e: e.selected_at, reverse=True,
        )
        return mine[(page - 1) * limit: page * limit], len(mine)

    async def delete_by_user(self, user_id):
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.user_id != user_id]
        return before - len(self.entries)

    async def delete_older_than(self, days):
        cutoff = utcnow() - timedelta(days=days)
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.selected_at >= cutoff]
        return before - len(self.entries)


def make_service(
    meals=(), restaurants=(), *, history: FakeHistoryStore | None = None,
    seed: int = 7, hour: int = 15, preferences: UserPreferences | None = None,
) -> tuple[SuggestionService, FakeHistoryStore]:
    history = history if history is not None else FakeHistoryStore()
    svc = SuggestionService(
        FakeCandidateStore(meals, restaurants, preferences),
        history,
        rng=random.Random(seed),
        clock=lambda: datetime(2024, 5, 1, hour, 30),
    )
    return svc, history


# ───────────────────────── database / API ──────────────────────────
@pytest.fixture
async def db_engine():
    eng = orm.create_engine_for("sqlite+aiosqlite://")
    await orm.init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    async def _override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[orm.get_session] = _override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def user_id(session_factory) -> int:
    async with session_factory() as db:
        user = orm.User(username="alice", email="alice@example.com")
        db.add(user)
        await db.commit()
        return user.id


@pytest.fixture
def auth(user_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token(user_id)}"}


@pytest.fixture
def add_catalog(session_factory, user_id):
    """Insert meals / restaurants for the test user; returns their ids."""

    async def _add(meals=(), restaurants=()):
        async with session_factory() as db:
            tags: dict[str, orm.Tag] = {}

            def _tags(names):
                for n in names:
                    tags.setdefault(n, orm.Tag(name=n))
                return [tags[n] for n in names]

            meal_rows = [
                orm.Meal(user_id=user_id, tags=_tags(m.pop("tags", [])), **m)
                for m in (dict(x) for x in meals)
            ]
            rest_rows = [
                orm.Restaurant(user_id=user_id, tags=_tags(r.pop("tags", [])), **r)
                for r in (dict(x) for x in restaurants)
            ]
            db.add_all(meal_rows + rest_rows)
            await db.commit()
            return [m.id for m in meal_rows], [r.id for r in rest_rows]

    return _add


@pytest.fixture
def add_history(session_factory, user_id):
    async def _add(item_type: str, item_id: int, days_ago: float = 0):
        async with session_factory() as db:
            db.add(
                orm.SelectionHistory(
                    user_id=user_id,
                    item_type=item_type,
                    item_id=item_id,
                    selected_at=utcnow() - timedelta(days=days_ago),
                )
            )
            await db.commit()

    return _add
