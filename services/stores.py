"""
services/stores.py
────────────────────────────────────────────────────────────────────────
SQLAlchemy-backed implementations of the candidate and history stores
consumed by `core.suggestions.SuggestionService`.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List

from sqlalchemy import Select, delete, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models import (
    ItemType,
    Meal,
    Restaurant,
    SearchFilters,
    SelectionEntry,
    UserPreferences,
    utcnow,
)
from services import db as orm

_LOG = logging.getLogger(__name__)


def _like_term(text: str) -> str:
    """`%text%` with LIKE wildcards in `text` matched literally."""
    for ch in ("\\", "%", "_"):
        text = text.replace(ch, "\\" + ch)
    return f"%{text}%"


def _require_all_tags(stmt: Select, owner_col, link_owner, filters: SearchFilters) -> Select:
    """Narrow `stmt` to rows carrying every requested tag id / tag name."""
    link = link_owner.table

    if filters.tag_ids:
        ids = set(filters.tag_ids)
        sub = (
            select(link_owner)
            .where(link.c.tag_id.in_(ids))
            .group_by(link_owner)
            .having(func.count(distinct(link.c.tag_id)) == len(ids))
        )
        stmt = stmt.where(owner_col.in_(sub))

    if filters.tag_names:
        names = {n.strip().lower() for n in filters.tag_names if n.strip()}
        if names:
            sub = (
                select(link_owner)
                .join(orm.Tag, orm.Tag.id == link.c.tag_id)
                .where(func.lower(orm.Tag.name).in_(names))
                .group_by(link_owner)
                .having(func.count(distinct(func.lower(orm.Tag.name))) == len(names))
            )
            stmt = stmt.where(owner_col.in_(sub))
    return stmt


# ───────────────────────── candidates ──────────────────────────────
class SqlCandidateStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_meals(
        self, user_id: int, filters: SearchFilters, limit: int
    ) -> List[Meal]:
        m = orm.Meal
        stmt = select(m).where(m.user_id == user_id)

        if filters.cuisine_type:
            stmt = stmt.where(m.cuisine_type == filters.cuisine_type)
        if filters.difficulty_level:
            stmt = stmt.where(m.difficulty_level == filters.difficulty_level)
        if filters.prep_time_max:
            stmt = stmt.where(m.prep_time <= filters.prep_time_max)
        if filters.is_favorite is not None:
            stmt = stmt.where(m.is_favorite == filters.is_favorite)
        if filters.search:
            term = _like_term(filters.search)
            stmt = stmt.where(
                or_(m.name.like(term, escape="\\"), m.description.like(term, escape="\\"))
            )
        stmt = _require_all_tags(stmt, m.id, orm.meal_tags.c.meal_id, filters)

        stmt = stmt.order_by(m.created_at.desc(), m.id.desc()).limit(limit)
        rows = (await self._db.execute(stmt)).scalars().all()
        return [Meal.model_validate(r, from_attributes=True) for r in rows]

    async def find_restaurants(
        self, user_id: int, filters: SearchFilters, limit: int
    ) -> List[Restaurant]:
        r = orm.Restaurant
        stmt = select(r).where(r.user_id == user_id)

        if filters.cuisine_type:
            stmt = stmt.where(r.cuisine_type == filters.cuisine_type)
        if filters.price_range:
            stmt = stmt.where(r.price_range == filters.price_range)
        if filters.rating_min is not None:
            stmt = stmt.where(r.rating >= filters.rating_min)
        if filters.is_favorite is not None:
            stmt = stmt.where(r.is_favorite == filters.is_favorite)
        if filters.search:
            term = _like_term(filters.search)
            stmt = stmt.where(
                or_(r.name.like(term, escape="\\"), r.address.like(term, escape="\\"))
            )
        stmt = _require_all_tags(stmt, r.id, orm.restaurant_tags.c.restaurant_id, filters)

        stmt = stmt.order_by(r.created_at.desc(), r.id.desc()).limit(limit)
        rows = (await self._db.execute(stmt)).scalars().all()
        return [Restaurant.model_validate(x, from_attributes=True) for x in rows]

    async def get_preferences(self, user_id: int) -> UserPreferences:
        user = await self._db.get(orm.User, user_id)
        if user is None:
            return UserPreferences()
        return UserPreferences.model_validate(user.preferences_dict())


# ────────────────────────── history ────────────────────────────────
class SqlHistoryStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def record(self, user_id: int, item_type: ItemType, item_id: int) -> SelectionEntry:
        row = orm.SelectionHistory(
            user_id=user_id, item_type=item_type, item_id=item_id, selected_at=utcnow()
        )
        self._db.add(row)
        await self._db.commit()
        return SelectionEntry.model_validate(row, from_attributes=True)

    async def recent_item_ids(self, user_id: int, item_type: ItemType, days: int) -> set[int]:
        if days <= 0:
            return set()
        h = orm.SelectionHistory
        cutoff = utcnow() - timedelta(days=days)
        res = await self._db.execute(
            select(h.item_id)
            .where(
                h.user_id == user_id,
                h.item_type == item_type,
                h.selected_at > cutoff,
            )
            .distinct()
        )
        return set(res.scalars().all())

    async def entries_since(self, user_id: int, since: datetime | None) -> List[SelectionEntry]:
        h = orm.SelectionHistory
        stmt = select(h).where(h.user_id == user_id)
        if since is not None:
            stmt = stmt.where(h.selected_at > since)
        stmt = stmt.order_by(h.selected_at.desc(), h.id.desc())
        rows = (await self._db.execute(stmt)).scalars().all()
        return [SelectionEntry.model_validate(x, from_attributes=True) for x in rows]

    async def list_page(
        self, user_id: int, page: int, limit: int
    ) -> tuple[List[SelectionEntry], int]:
        h = orm.SelectionHistory
        total = (
            await self._db.execute(
                select(func.count()).select_from(h).where(h.user_id == user_id)
            )
        ).scalar_one()
        rows = (
            await self._db.execute(
                select(h)
                .where(h.user_id == user_id)
                .order_by(h.selected_at.desc(), h.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
        ).scalars().all()
        return [SelectionEntry.model_validate(x, from_attributes=True) for x in rows], total

    async def delete_by_user(self, user_id: int) -> int:
        h = orm.SelectionHistory
        res = await self._db.execute(delete(h).where(h.user_id == user_id))
        await self._db.commit()
        return res.rowcount or 0

    async def delete_older_than(self, days: int) -> int:
        h = orm.SelectionHistory
        cutoff = utcnow() - timedelta(days=days)
        res = await self._db.execute(delete(h).where(h.selected_at < cutoff))
        await self._db.commit()
        _LOG.info("retention sweep removed %d entries older than %d days", res.rowcount or 0, days)
        return res.rowcount or 0
