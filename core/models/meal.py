from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]


class Tag(BaseModel):
    id: int
    name: str
    color: str = "#3B82F6"

    model_config = ConfigDict(from_attributes=True)


class Meal(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None = None
    cuisine_type: str | None = None
    difficulty_level: Difficulty | None = None
    prep_time: int | None = None          # minutes
    is_favorite: bool = False
    created_at: datetime | None = None
    tags: list[Tag] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
