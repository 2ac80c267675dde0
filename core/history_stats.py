"""
core/history_stats.py
────────────────────────────────────────────────────────────────────────
Read-only statistics over `SelectionEntry` rows.

All helpers take the raw entries (already scoped to one user) and build
a small DataFrame; nothing here touches the database.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List

import pandas as pd

from core.models import ITEM_TYPES, ItemType, SelectionEntry

_LOG = logging.getLogger(__name__)

_COLUMNS = ["item_type", "item_id", "selected_at"]


def _frame(entries: Iterable[SelectionEntry]) -> pd.DataFrame:
    rows = [
        {"item_type": e.item_type, "item_id": e.item_id, "selected_at": e.selected_at}
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=_COLUMNS)
    df["selected_at"] = pd.to_datetime(df["selected_at"])
    return df


def window_start(days: int, now: datetime) -> datetime:
    return now - timedelta(days=days)


# ─────────────────────────────── recency ────────────────────────── #
def recent_ids(
    entries: Iterable[SelectionEntry],
    item_type: ItemType,
    days: int,
    now: datetime,
) -> set[int]:
    """Ids of `item_type` picked strictly after `now - days`."""
    if days <= 0:
        return set()
    cutoff = window_start(days, now)
    return {
        e.item_id for e in entries
        if e.item_type == item_type and e.selected_at > cutoff
    }


def was_recently_selected(
    entries: Iterable[SelectionEntry],
    item_type: ItemType,
    item_id: int,
    days: int,
    now: datetime,
) -> bool:
    return item_id in recent_ids(entries, item_type, days, now)


# ─────────────────────────────── counts ─────────────────────────── #
def daily_counts(
    entries: Iterable[SelectionEntry],
    days: int,
    now: datetime,
) -> List[Dict[str, Any]]:
    """
    One row per (day, item_type) inside the window, newest day first.
    Within a day meals come before restaurants.
    """
    df = _frame(entries)
    df = df[df["selected_at"] > window_start(days, now)]
    if df.empty:
        return []

    df = df.assign(date=df["selected_at"].dt.strftime("%Y-%m-%d"))
    grouped = (
        df.groupby(["date", "item_type"])
        .size()
        .reset_index(name="count")
        .sort_values(["date", "item_type"], ascending=[False, True])
    )
    return [
        {"date": r["date"], "item_type": r["item_type"], "count": int(r["count"])}
        for r in grouped.to_dict("records")
    ]


def type_totals(entries: Iterable[SelectionEntry]) -> Dict[str, int]:
    df = _frame(entries)
    counts = df["item_type"].value_counts()
    return {t: int(counts.get(t, 0)) for t in ITEM_TYPES}


def most_selected(
    entries: Iterable[SelectionEntry],
    item_type: ItemType,
    limit: int = 5,
) -> List[Dict[str, Any]]:
    """
    Rank item ids by selection count desc, ties broken by the most
    recent selection desc.
    """
    df = _frame(entries)
    df = df[df["item_type"] == item_type]
    if df.empty:
        return []

    ranked = (
        df.groupby("item_id")
        .agg(selection_count=("selected_at", "size"), last_selected=("selected_at", "max"))
        .reset_index()
        .sort_values(["selection_count", "last_selected"], ascending=[False, False])
        .head(limit)
    )
    _LOG.debug("most_selected(%s) → %d rows", item_type, len(ranked))
    return [
        {
            "item_id": int(r.item_id),
            "selection_count": int(r.selection_count),
            "last_selected": r.last_selected.to_pydatetime(),
        }
        for r in ranked.itertuples(index=False)
    ]
