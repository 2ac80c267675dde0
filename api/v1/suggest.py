# api/v1/suggest.py
from __future__ import annotations
import math
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core import history_stats
from core.models import (
    ItemType,
    PersonalizedSuggestions,
    QuickSuggestions,
    SearchFilters,
    SelectionEntry,
    SelectionOptions,
    Suggestion,
    utcnow,
)
from core.models.meal import Difficulty
from core.models.restaurant import PriceRange
from core.suggestions import SuggestionService
from services.auth import current_user_id
from services.db import get_session
from services.stores import SqlCandidateStore, SqlHistoryStore
from config import settings
from api.v1.schemas import ApiResponse, DeletedCount, Pagination, SelectionStats

router = APIRouter()

_NOT_FOUND = "No items found matching criteria"


# ───────────────────────── dependencies ─────────────────────────────
def get_service(db: AsyncSession = Depends(get_session)) -> SuggestionService:
    return SuggestionService(SqlCandidateStore(db), SqlHistoryStore(db))


def query_options(
    exclude_recent_days: int | None = Query(None, ge=0, le=365),
    weight_favorites: bool = True,
    type: ItemType | None = None,
    cuisine_type: str | None = Query(None, max_length=50),
    difficulty_level: Difficulty | None = None,
    prep_time_max: int | None = Query(None, ge=1, le=1440),
    price_range: PriceRange | None = None,
    rating_min: float | None = Query(None, ge=0, le=5),
    is_favorite: bool | None = None,
    tag_ids: List[int] | None = Query(None),
    tag_names: List[str] | None = Query(None),
    search: str | None = Query(None, max_length=100),
) -> SelectionOptions:
    """Selection options for GET requests, read from the query string."""
    try:
        if exclude_recent_days is None:
            exclude_recent_days = settings.default_exclude_recent_days
        return SelectionOptions(
            exclude_recent_days=exclude_recent_days,
            weight_favorites=weight_favorites,
            type=type,
            filters=SearchFilters(
                cuisine_type=cuisine_type,
                difficulty_level=difficulty_level,
                prep_time_max=prep_time_max,
                price_range=price_range,
                rating_min=rating_min,
                is_favorite=is_favorite,
                tag_ids=tag_ids or [],
                tag_names=tag_names or [],
                search=search,
            ),
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def _found(suggestion: Suggestion | None, detail: str = _NOT_FOUND) -> Suggestion:
    if suggestion is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return suggestion


# ───────────────────────── suggestions ──────────────────────────────
@router.get(
    "/suggestion",
    response_model=ApiResponse[Suggestion],
    response_model_exclude_none=True,
    summary="Preview a random meal or restaurant (no history write)",
)
async def get_random_suggestion(
    options: SelectionOptions = Depends(query_options),
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[Suggestion]:
    suggestion = await svc.get_random_suggestion(user_id, options)
    return ApiResponse(data=_found(suggestion))


@router.post(
    "/pick",
    response_model=ApiResponse[Suggestion],
    response_model_exclude_none=True,
    summary="Pick a random item and record it in the selection history",
)
async def pick_random(
    body: SelectionOptions,
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[Suggestion]:
    suggestion = await svc.pick_random(user_id, body)
    return ApiResponse(
        data=_found(suggestion), message="Selection recorded successfully"
    )


@router.get(
    "/time-based",
    response_model=ApiResponse[Suggestion],
    response_model_exclude_none=True,
)
async def get_time_based_suggestion(
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[Suggestion]:
    suggestion = await svc.get_time_based_suggestion(user_id)
    return ApiResponse(data=_found(suggestion, "No items found for current time"))


@router.get(
    "/diverse",
    response_model=ApiResponse[List[Suggestion]],
    response_model_exclude_none=True,
)
async def get_diverse_suggestions(
    count: int = Query(3, ge=1, le=10),
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[List[Suggestion]]:
    return ApiResponse(data=await svc.get_diverse_suggestions(user_id, count))


@router.get(
    "/personalized",
    response_model=ApiResponse[PersonalizedSuggestions],
    response_model_exclude_none=True,
)
async def get_personalized_suggestions(
    limit: int = Query(5, ge=1, le=50),
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[PersonalizedSuggestions]:
    return ApiResponse(data=await svc.get_personalized_suggestions(user_id, limit))


@router.get(
    "/quick",
    response_model=ApiResponse[QuickSuggestions],
    response_model_exclude_none=True,
)
async def get_quick_suggestions(
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[QuickSuggestions]:
    return ApiResponse(data=await svc.get_quick_suggestions(user_id))


# ─────────────────────────── history ────────────────────────────────
@router.get(
    "/history",
    response_model=ApiResponse[List[SelectionEntry]],
    response_model_exclude_none=True,
)
async def get_selection_history(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[List[SelectionEntry]]:
    entries, total = await svc.history_page(user_id, page, limit)
    return ApiResponse(
        data=entries,
        pagination=Pagination(
            page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)
        ),
    )


@router.get(
    "/stats",
    response_model=ApiResponse[SelectionStats],
    response_model_exclude_none=True,
)
async def get_selection_stats(
    days: int = Query(30, ge=1, le=365),
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[SelectionStats]:
    now = utcnow()
    entries = await svc.history_entries(user_id)
    stats = SelectionStats(
        daily_counts=history_stats.daily_counts(entries, days, now),
        totals=history_stats.type_totals(
            [e for e in entries if e.selected_at > history_stats.window_start(days, now)]
        ),
        most_selected_meals=history_stats.most_selected(entries, "meal", 5),
        most_selected_restaurants=history_stats.most_selected(entries, "restaurant", 5),
    )
    return ApiResponse(data=stats)


@router.delete(
    "/history",
    response_model=ApiResponse[DeletedCount],
    response_model_exclude_none=True,
)
async def clear_selection_history(
    user_id: int = Depends(current_user_id),
    svc: SuggestionService = Depends(get_service),
) -> ApiResponse[DeletedCount]:
    deleted = await svc.clear_history(user_id)
    return ApiResponse(
        data=DeletedCount(deleted_count=deleted),
        message=f"Cleared {deleted} selection history entries",
    )
