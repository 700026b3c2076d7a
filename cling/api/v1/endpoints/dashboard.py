from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cling import crud
from cling.api import deps
from cling.db.session import get_db
from cling.reminders.service import ReminderService
from cling.reminders.status import COMPLETED, OVERDUE, UPCOMING
from cling.schemas.auth import SessionClaims
from cling.schemas.dashboard import UserInfoResponse

router = APIRouter()


@router.get("/userinfo", response_model=UserInfoResponse)
def get_user_info(
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    """Caller profile with reminder counts by effective status."""
    user = crud.user.get(db, id=claims.sub)
    email = user.email if user else claims.email
    name = (user.name if user else None) or email.split("@")[0]

    counts = ReminderService(db).status_counts(claims.sub)
    return UserInfoResponse(
        id=user.id if user else claims.sub,
        email=email,
        name=name,
        reminders_count=counts["total"],
        upcoming_count=counts[UPCOMING],
        completed_count=counts[COMPLETED],
        overdue_count=counts[OVERDUE],
    )
