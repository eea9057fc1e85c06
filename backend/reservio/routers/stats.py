"""Admin statistics route."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reservio.database import get_db
from reservio.deps import require_admin
from reservio.schemas.auth import TokenPayload
from reservio.schemas.stats import AdminStatsOut
from reservio.services import stats_service

router = APIRouter()


@router.get("/admin", response_model=AdminStatsOut)
def admin_stats(db: Session = Depends(get_db), _admin: TokenPayload = Depends(require_admin)):
    return stats_service.get_admin_stats(db)
