"""Registration API routes — participant self-service and admin review."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reservio.database import get_db
from reservio.deps import require_admin, require_participant
from reservio.schemas.auth import TokenPayload
from reservio.schemas.registration import RegistrationOut, TicketOut
from reservio.services import registration_service, ticket_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/my", response_model=list[RegistrationOut])
def my_registrations(db: Session = Depends(get_db), participant: TokenPayload = Depends(require_participant)):
    return registration_service.find_by_user(db, participant.sub)


@router.delete("/{registration_id}", response_model=RegistrationOut)
def cancel_registration(
    registration_id: str,
    db: Session = Depends(get_db),
    participant: TokenPayload = Depends(require_participant),
):
    """Cancel one of the caller's own registrations."""
    return registration_service.cancel_own_registration(db, registration_id, participant.sub)


@router.get("/{registration_id}/ticket", response_model=TicketOut)
def get_ticket(
    registration_id: str,
    db: Session = Depends(get_db),
    participant: TokenPayload = Depends(require_participant),
):
    """Ticket data for a confirmed registration of the caller."""
    return ticket_service.get_ticket_data(db, registration_id, participant.sub)


@router.post("/{registration_id}/confirm", response_model=RegistrationOut)
def confirm_registration(registration_id: str, db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    return registration_service.confirm_registration(db, registration_id)


@router.post("/{registration_id}/reject", response_model=RegistrationOut)
def reject_registration(registration_id: str, db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    return registration_service.reject_registration(db, registration_id)
