"""Pydantic schemas for the admin dashboard statistics."""
from pydantic import BaseModel


class EventCounts(BaseModel):
    total: int
    upcoming: int
    published: int
    draft: int
    cancelled: int


class RegistrationCounts(BaseModel):
    total: int
    pending: int
    confirmed: int
    cancelled: int


class FillRate(BaseModel):
    average_percentage: float
    total_capacity: int
    total_confirmed: int


class TopEvent(BaseModel):
    event_id: str
    title: str
    capacity: int
    confirmed_count: int
    fill_percentage: int


class AdminStatsOut(BaseModel):
    events: EventCounts
    registrations: RegistrationCounts
    fill_rate: FillRate
    top_events: list[TopEvent]
