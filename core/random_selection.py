"""
core/random_selection.py
────────────────────────────────────────────────────────────────────────
Pick one item out of a user's candidate pool.

Ranking
-------
1.  Items selected inside the recency window are dropped.
2.  Tier     – favorites (0) before everything else (1) when
              `weight_favorites` is on, otherwise one shared tier.
3.  Rating   – restaurants only, higher first; a missing rating counts
              as zero.  Meals have no secondary key.
4.  The winning (tier, rating) group is sampled uniformly.

Favorites and well-rated restaurants therefore win structurally; the
randomness only applies among equals.
"""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from typing import Iterable, Protocol, Sequence, TypeVar

_LOG = logging.getLogger(__name__)


class _Rng(Protocol):
    def randrange(self, stop: int) -> int: ...


class _Selectable(Protocol):
    id: int
    is_favorite: bool


T = TypeVar("T", bound=_Selectable)


def ranking_key(item: _Selectable, weight_favorites: bool) -> tuple[int, float]:
    """Composite sort key; smaller is better."""
    tier = 0 if (item.is_favorite or not weight_favorites) else 1
    rating = getattr(item, "rating", None) or 0.0
    return tier, -float(rating)


def select_random(
    candidates: Sequence[T],
    recently_selected_ids: Iterable[int] = (),
    weight_favorites: bool = True,
    rng: _Rng | None = None,
) -> T | None:
    """
    Return one item from `candidates` or None when nothing is eligible.

    `rng` only needs `randrange`; pass a seeded `random.Random` to make
    the draw reproducible.
    """
    excluded = set(recently_selected_ids)
    eligible = [c for c in candidates if c.id not in excluded]
    if not eligible:
        _LOG.debug(
            "no eligible candidates (pool=%d, excluded=%d)",
            len(candidates), len(excluded),
        )
        return None

    groups: dict[tuple[int, float], list[T]] = defaultdict(list)
    for item in eligible:
        groups[ranking_key(item, weight_favorites)].append(item)

    winners = groups[min(groups)]
    draw = (rng or random).randrange(len(winners))
    return winners[draw]
