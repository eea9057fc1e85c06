"""Pydantic schemas for Registrations."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from reservio.models.registration import RegistrationStatus
from reservio.schemas.event import EventSummary


class ParticipantSummary(BaseModel):
    user_id: str
    fullname: str
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class RegistrationOut(BaseModel):
    registration_id: str
    user_id: str
    event_id: str
    status: RegistrationStatus
    confirmed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    event: Optional[EventSummary] = None
    user: Optional[ParticipantSummary] = None

    model_config = {"from_attributes": True}


class TicketOut(BaseModel):
    registration_id: str
    participant_name: str
    participant_email: Optional[str] = None
    event_title: str
    event_location: str
    event_start_date: datetime
    event_end_date: datetime
    confirmed_at: datetime
    date_range: str
    timezone: str
