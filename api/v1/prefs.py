from __future__ import annotations

import json
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth import current_user_id
from services.db import User, get_session
from api.v1.schemas import ApiResponse, UserPrefsIn, UserPrefsOut

router = APIRouter()


# ───────────────────────── helpers ──────────────────────────
def _serialize(row: User) -> UserPrefsOut:
    """Convert SQLAlchemy row ➜ Pydantic schema with proper JSON decoding."""
    return UserPrefsOut(user_id=row.id, **row.preferences_dict())


async def _load(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user


# ───────────────────────── read ─────────────────────────────
@router.get(
    "/me/preferences",
    response_model=ApiResponse[UserPrefsOut],
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def get_preferences(
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[UserPrefsOut]:
    return ApiResponse(data=_serialize(await _load(db, user_id)))


# ───────────────────────── replace ──────────────────────────
@router.put(
    "/me/preferences",
    response_model=ApiResponse[UserPrefsOut],
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
async def put_preferences(
    body: UserPrefsIn,
    user_id: int = Depends(current_user_id),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[UserPrefsOut]:
    user = await _load(db, user_id)
    user.preferences = json.dumps(body.model_dump(exclude_none=True))
    await db.commit()
    await db.refresh(user)
    return ApiResponse(data=_serialize(user), message="Preferences updated")
