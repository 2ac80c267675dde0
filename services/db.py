"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Models for users, the meal/restaurant catalogue, tags and the
  append-only selection history
* Session helpers used by routers / scripts
"""
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, AsyncIterator, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship
from sqlalchemy.pool import StaticPool

from config import settings
from core.models.history import utcnow

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None


def create_engine_for(url: str) -> AsyncEngine:
    # in-memory sqlite must share one connection or every session sees
    # an empty database
    if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, pool_pre_ping=True)


async def engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = create_engine_for(settings.database_url)
    return _ENGINE


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)

meal_tags = Table(
    "meal_tags",
    Base.metadata,
    Column("meal_id", ForeignKey("meals.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

restaurant_tags = Table(
    "restaurant_tags",
    Base.metadata,
    Column("restaurant_id", ForeignKey("restaurants.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String, unique=True)
    email: Mapped[str] = mapped_column(String, unique=True)
    preferences: Mapped[str] = mapped_column(Text, default="{}")  # serialized dict
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def preferences_dict(self) -> dict[str, Any]:
        try:
            data = json.loads(self.preferences or "{}")
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True)
    color: Mapped[str] = mapped_column(String, default="#3B82F6")


class Meal(Base):
    __tablename__ = "meals"
    __table_args__ = (
        CheckConstraint(
            "difficulty_level IN ('easy', 'medium', 'hard')", name="ck_meals_difficulty"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)
    cuisine_type: Mapped[str | None] = mapped_column(String, index=True)
    difficulty_level: Mapped[str | None] = mapped_column(String)
    prep_time: Mapped[int | None] = mapped_column(Integer)  # minutes
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    tags: Mapped[List[Tag]] = relationship(secondary=meal_tags, lazy="selectin")


class Restaurant(Base):
    __tablename__ = "restaurants"
    __table_args__ = (
        CheckConstraint(
            "price_range IN ('$', '$$', '$$$', '$$$$')", name="ck_restaurants_price"
        ),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_restaurants_rating"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String)
    cuisine_type: Mapped[str | None] = mapped_column(String, index=True)
    address: Mapped[str | None] = mapped_column(String)
    phone: Mapped[str | None] = mapped_column(String)
    price_range: Mapped[str | None] = mapped_column(String)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    rating: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    tags: Mapped[List[Tag]] = relationship(secondary=restaurant_tags, lazy="selectin")


class SelectionHistory(Base):
    __tablename__ = "selection_history"
    __table_args__ = (
        CheckConstraint("item_type IN ('meal', 'restaurant')", name="ck_history_item_type"),
        Index("idx_selection_history_user_type", "user_id", "item_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    item_type: Mapped[str] = mapped_column(String)
    item_id: Mapped[int] = mapped_column(Integer)
    selected_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


# ───────── schema / session helpers ──────────────────────────────────

async def init_models(eng: AsyncEngine | None = None) -> None:
    eng = eng or await engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    eng = await engine()
    async_session = async_sessionmaker(eng, expire_on_commit=False)
    async with async_session() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Same session as `get_session`, usable from scripts."""
    eng = await engine()
    async_session = async_sessionmaker(eng, expire_on_commit=False)
    async with async_session() as session:
        yield session
