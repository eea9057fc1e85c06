"""Event API routes — delegates to event_service and registration_service."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from reservio.database import get_db
from reservio.deps import require_admin, require_participant
from reservio.models.event import EventStatus
from reservio.schemas.auth import TokenPayload
from reservio.schemas.event import EventCreate, EventUpdate, EventOut
from reservio.schemas.registration import RegistrationOut
from reservio.services import event_service, registration_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/published", response_model=list[EventOut])
def list_published(db: Session = Depends(get_db)):
    """Published events, soonest first. Open to everyone."""
    return event_service.list_published(db)


@router.get("/", response_model=list[EventOut])
def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _admin: TokenPayload = Depends(require_admin),
):
    """All events, optionally filtered by status (admin only)."""
    return event_service.list_events(db, status_filter)


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    admin: TokenPayload = Depends(require_admin),
):
    """Create a DRAFT event owned by the calling admin."""
    return event_service.create_event(
        db=db,
        title=payload.title,
        description=payload.description,
        location=payload.location,
        start_date=payload.start_date,
        end_date=payload.end_date,
        capacity=payload.capacity,
        admin_id=admin.sub,
        metadata=payload.metadata,
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return event_service.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    _admin: TokenPayload = Depends(require_admin),
):
    """Update a DRAFT event (partial update)."""
    updates = payload.model_dump(exclude_unset=True)
    return event_service.update_event(db, event_id, updates)


@router.post("/{event_id}/publish", response_model=EventOut)
def publish_event(event_id: str, db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    return event_service.publish_event(db, event_id)


@router.post("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: str, db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    return event_service.cancel_event(db, event_id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: str, db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    event_service.delete_event(db, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/register", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register(
    event_id: str,
    db: Session = Depends(get_db),
    participant: TokenPayload = Depends(require_participant),
):
    """Request a seat on a published event."""
    return registration_service.create_registration(db, event_id, participant.sub)


@router.get("/{event_id}/registrations", response_model=list[RegistrationOut])
def list_event_registrations(
    event_id: str,
    db: Session = Depends(get_db),
    _admin: TokenPayload = Depends(require_admin),
):
    """Every registration of one event, newest first (admin only)."""
    return registration_service.find_by_event(db, event_id)
