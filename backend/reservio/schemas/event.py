"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field

from reservio.models.event import EventStatus


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    location: str = Field(min_length=1, max_length=200)
    start_date: datetime
    end_date: datetime
    capacity: int = Field(gt=0)
    metadata: Optional[dict[str, Any]] = None


class EventUpdate(BaseModel):
    """Partial update — only the fields sent are applied."""

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    capacity: Optional[int] = Field(None, gt=0)
    metadata: Optional[dict[str, Any]] = None


class EventOut(BaseModel):
    event_id: str
    title: str
    description: str
    location: str
    start_date: datetime
    end_date: datetime
    capacity: int
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("extra_metadata", "metadata")
    )
    status: EventStatus
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventSummary(BaseModel):
    event_id: str
    title: str
    location: str
    start_date: datetime
    end_date: datetime
    capacity: int
    status: EventStatus

    model_config = {"from_attributes": True}
