"""
Seed a demo user with tags, meals and restaurants, then print a bearer
token for it.

Usage
-----

    # default hard-coded catalogue
    python -m scripts.seed_catalog demo demo@example.com

    # custom catalogue (same schema) in a JSON file
    python -m scripts.seed_catalog demo demo@example.com --file path/to/catalog.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from sqlalchemy import select

from services.auth import create_token
from services.db import Meal, Restaurant, Tag, User, init_models, session_scope

# ────────────────────────────────────────────────────────────────────
_DEFAULT_CATALOG: dict[str, list[dict[str, Any]]] = {
    "meals": [
        {
            "name": "Shakshuka",
            "cuisine_type": "Middle Eastern",
            "difficulty_level": "easy",
            "prep_time": 25,
            "is_favorite": True,
            "tags": ["breakfast", "vegetarian"],
        },
        {
            "name": "Chicken Caesar Wrap",
            "cuisine_type": "American",
            "difficulty_level": "easy",
            "prep_time": 15,
            "tags": ["lunch", "quick"],
        },
        {
            "name": "Mushroom Risotto",
            "cuisine_type": "Italian",
            "difficulty_level": "medium",
            "prep_time": 45,
            "tags": ["dinner", "vegetarian"],
        },
    ],
    "restaurants": [
        {
            "name": "Pho Corner",
            "cuisine_type": "Vietnamese",
            "price_range": "$",
            "rating": 4.5,
            "is_favorite": True,
            "tags": ["lunch"],
        },
        {
            "name": "Trattoria Sole",
            "cuisine_type": "Italian",
            "price_range": "$$$",
            "rating": 4.0,
            "tags": ["dinner"],
        },
    ],
}


async def _tags(db, names: list[str], cache: dict[str, Tag]) -> list[Tag]:
    out = []
    for name in names:
        if name not in cache:
            tag = (await db.execute(select(Tag).where(Tag.name == name))).scalar_one_or_none()
            if tag is None:
                tag = Tag(name=name)
                db.add(tag)
            cache[name] = tag
        out.append(cache[name])
    return out


async def _seed(username: str, email: str, catalog: dict[str, list[dict[str, Any]]]) -> None:
    await init_models()
    async with session_scope() as db:
        user = (
            await db.execute(select(User).where(User.username == username))
        ).scalar_one_or_none()
        if user is None:
            user = User(username=username, email=email)
            db.add(user)
            await db.flush()

        cache: dict[str, Tag] = {}
        for m in catalog.get("meals", []):
            m = dict(m)
            tags = await _tags(db, m.pop("tags", []), cache)
            db.add(Meal(user_id=user.id, tags=tags, **m))
        for r in catalog.get("restaurants", []):
            r = dict(r)
            tags = await _tags(db, r.pop("tags", []), cache)
            db.add(Restaurant(user_id=user.id, tags=tags, **r))

        await db.commit()
        user_id = user.id

    print(
        f"✓ seeded {len(catalog.get('meals', []))} meals and "
        f"{len(catalog.get('restaurants', []))} restaurants for user {user_id}"
    )
    print(f"token: {create_token(user_id)}")


def _load_json(path: Path) -> dict[str, list[dict[str, Any]]]:
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("JSON file must contain {'meals': [...], 'restaurants': [...]}")
    return data


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("username", help="user to create or reuse")
    parser.add_argument("email", help="email for a newly created user")
    parser.add_argument(
        "--file",
        type=Path,
        help="optional JSON file with the catalogue to seed (overrides defaults)",
    )
    args = parser.parse_args()

    catalog = _load_json(args.file) if args.file else _DEFAULT_CATALOG
    asyncio.run(_seed(args.username, args.email, catalog))


if __name__ == "__main__":
    main()
