from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cling.api import deps
from cling.db.session import get_db
from cling.schemas.auth import SessionClaims
from cling.schemas.reminder import (
    OkResponse, ReconcileResult, ReminderCreate, ReminderListResponse,
    ReminderRead, ReminderUpdate,
)
from .service import DEFAULT_PAGE_SIZE, ReminderService


router = APIRouter()


@router.post("", response_model=ReminderRead, status_code=status.HTTP_201_CREATED)
def create_reminder_endpoint(
    payload: ReminderCreate,
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    return ReminderService(db).create(claims.sub, payload)


@router.get("", response_model=ReminderListResponse)
def list_reminders_endpoint(
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
    q: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    date_from: Optional[str] = Query(default=None, alias="dateFrom"),
    date_to: Optional[str] = Query(default=None, alias="dateTo"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort_by: str = Query(default="date", alias="sortBy"),
    order: str = "asc",
) -> Any:
    """
    List the caller's reminders.

    ``status`` filters on the effective status, so ``overdue`` includes
    reminders still stored as ``upcoming`` whose time has passed.
    """
    return ReminderService(db).list(
        claims.sub,
        q=q,
        category=category,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=order,
    )


@router.post("/reconcile-overdue", response_model=ReconcileResult)
def reconcile_overdue_endpoint(
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    return ReminderService(db).reconcile_overdue(owner_id=claims.sub)


@router.get("/{reminder_id}", response_model=ReminderRead)
def get_reminder_endpoint(
    reminder_id: str,
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    return ReminderService(db).get(claims.sub, reminder_id)


@router.put("/{reminder_id}", response_model=ReminderRead)
def update_reminder_endpoint(
    reminder_id: str,
    payload: ReminderUpdate,
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    """Update an allow-listed subset of fields; unknown keys are ignored."""
    return ReminderService(db).update(claims.sub, reminder_id, payload)


@router.delete("/{reminder_id}", response_model=OkResponse)
def delete_reminder_endpoint(
    reminder_id: str,
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    ReminderService(db).delete(claims.sub, reminder_id)
    return OkResponse()


@router.post("/{reminder_id}/complete", response_model=ReminderRead)
def complete_reminder_endpoint(
    reminder_id: str,
    db: Session = Depends(get_db),
    claims: SessionClaims = Depends(deps.get_current_session),
) -> Any:
    return ReminderService(db).mark_completed(claims.sub, reminder_id)
