"""Pydantic schemas for analytics snapshots."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Platform = Literal["youtube", "tiktok", "twitch"]
TimeRange = Literal["7days", "30days", "3months", "6months", "1year"]


class SnapshotCreate(BaseModel):
    platform: Platform
    followers: int = Field(..., ge=0)
    views: int = Field(..., ge=0)
    engagement: float = Field(0.0, ge=0)


class SnapshotRead(BaseModel):
    id: uuid.UUID
    platform: str
    followers: int
    views: int
    engagement: float
    recorded_at: datetime

    model_config = {"from_attributes": True}
