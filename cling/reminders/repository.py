from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Query, Session

from cling.models.reminder import Reminder
from .status import COMPLETED, OVERDUE, UPCOMING

SORT_COLUMNS = {
    "createdAt": Reminder.created_at,
    "date": Reminder.date,
    "title": Reminder.title,
}


def create_reminder(db: Session, owner_id: int, fields: Dict[str, Any]) -> Reminder:
    reminder = Reminder(owner_id=owner_id, status=UPCOMING, **fields)
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_owned_reminder(db: Session, owner_id: int, reminder_id: UUID) -> Optional[Reminder]:
    return (
        db.query(Reminder)
        .filter(Reminder.id == reminder_id, Reminder.owner_id == owner_id)
        .first()
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_list_query(
    db: Session,
    owner_id: int,
    q: Optional[str] = None,
    category: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    stored_status: Optional[str] = None,
    exclude_stored_status: Optional[str] = None,
    sort_by: str = "date",
    descending: bool = False,
) -> Query:
    query = db.query(Reminder).filter(Reminder.owner_id == owner_id)
    if category:
        query = query.filter(Reminder.category == category)
    if q:
        pattern = f"%{_escape_like(q)}%"
        query = query.filter(
            or_(
                Reminder.title.ilike(pattern, escape="\\"),
                Reminder.description.ilike(pattern, escape="\\"),
            )
        )
    if date_from is not None:
        query = query.filter(Reminder.date >= date_from)
    if date_to is not None:
        query = query.filter(Reminder.date <= date_to)
    if stored_status:
        query = query.filter(Reminder.status == stored_status)
    if exclude_stored_status:
        query = query.filter(Reminder.status != exclude_stored_status)

    column = SORT_COLUMNS.get(sort_by, Reminder.date)
    ordering = column.desc() if descending else column.asc()
    # id as tie-breaker keeps pages stable
    return query.order_by(ordering, Reminder.id.asc())


def apply_updates(db: Session, reminder: Reminder, updates: Dict[str, Any]) -> Reminder:
    for field, value in updates.items():
        setattr(reminder, field, value)
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def delete_reminder(db: Session, reminder: Reminder) -> None:
    db.delete(reminder)
    db.commit()


def list_for_owner(db: Session, owner_id: int) -> List[Reminder]:
    return db.query(Reminder).filter(Reminder.owner_id == owner_id).all()


def get_overdue_candidates(db: Session, now: datetime, owner_id: Optional[int] = None) -> List[Reminder]:
    """Stored ``upcoming`` reminders whose date is already in the past"""
    query = db.query(Reminder).filter(
        Reminder.status == UPCOMING,
        Reminder.date.isnot(None),
        Reminder.date < now,
    )
    if owner_id is not None:
        query = query.filter(Reminder.owner_id == owner_id)
    return query.all()


def mark_overdue(db: Session, reminder_ids: Iterable[UUID]) -> int:
    ids = list(reminder_ids)
    if not ids:
        return 0
    # Only rows still stored as upcoming change
    result = db.execute(
        update(Reminder)
        .where(Reminder.id.in_(ids), Reminder.status == UPCOMING)
        .values(status=OVERDUE)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


def mark_completed(db: Session, reminder: Reminder) -> Reminder:
    return apply_updates(db, reminder, {"status": COMPLETED})
