import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from cling.core.exceptions import NotFoundError, ValidationError
from cling.core.metrics import reminders_created_total, reminders_reconciled_total
from cling.models.reminder import REMINDER_STATUSES, Reminder
from cling.schemas.reminder import (
    ReconcileResult, ReminderCreate, ReminderListMeta, ReminderListResponse,
    ReminderRead, ReminderUpdate,
)
from cling.utils.timezone import parse_iso_datetime, utcnow
from . import repository
from .status import COMPLETED, OVERDUE, UPCOMING, effective_status_of

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def parse_reminder_id(raw_id: str) -> UUID:
    try:
        return UUID(str(raw_id))
    except ValueError:
        raise ValidationError("Invalid id")


def parse_optional_date(value: Optional[str], field: str = "date") -> Optional[datetime]:
    if value is None or not str(value).strip():
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}")


class ReminderService:
    """Owner-scoped reminder operations. Every read projects the effective status."""

    def __init__(self, db: Session, now: Callable[[], datetime] = utcnow):
        self.db = db
        self.now = now

    def to_read(self, reminder: Reminder, now: Optional[datetime] = None) -> ReminderRead:
        effective = effective_status_of(reminder, now or self.now())
        return ReminderRead.model_validate(reminder).model_copy(update={"status": effective})

    def _get_owned(self, owner_id: int, raw_id: str) -> Reminder:
        reminder = repository.get_owned_reminder(self.db, owner_id, parse_reminder_id(raw_id))
        if reminder is None:
            raise NotFoundError("Reminder not found")
        return reminder

    def create(self, owner_id: int, payload: ReminderCreate) -> ReminderRead:
        title = (payload.title or "").strip()
        if not title:
            raise ValidationError("title is required")

        fields = payload.model_dump(exclude={"title", "date"})
        fields["title"] = title
        fields["date"] = parse_optional_date(payload.date)

        reminder = repository.create_reminder(self.db, owner_id, fields)
        reminders_created_total.inc()
        logger.info(f"Reminder {reminder.id} created for user {owner_id}")
        return self.to_read(reminder)

    def get(self, owner_id: int, raw_id: str) -> ReminderRead:
        return self.to_read(self._get_owned(owner_id, raw_id))

    def list(
        self,
        owner_id: int,
        q: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "date",
        order: str = "asc",
    ) -> ReminderListResponse:
        if status and status not in REMINDER_STATUSES:
            raise ValidationError("Invalid status value")

        page = max(page if page is not None else 1, 1)
        limit = min(max(limit if limit is not None else DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
        offset = (page - 1) * limit
        now = self.now()

        query_kwargs: Dict[str, Any] = dict(
            q=q,
            category=category,
            date_from=parse_optional_date(date_from, "dateFrom"),
            date_to=parse_optional_date(date_to, "dateTo"),
            sort_by=sort_by,
            descending=(order or "").lower() == "desc",
        )

        if status in (UPCOMING, OVERDUE):
            # Effective status depends on "now", so these filters finish in memory
            if status == OVERDUE:
                query_kwargs["exclude_stored_status"] = COMPLETED
            else:
                query_kwargs["stored_status"] = UPCOMING
            candidates = repository.build_list_query(self.db, owner_id, **query_kwargs).all()
            projected = [self.to_read(r, now) for r in candidates]
            matches = [r for r in projected if r.status == status]
            total = len(matches)
            data = matches[offset:offset + limit]
        else:
            if status == COMPLETED:
                query_kwargs["stored_status"] = COMPLETED
            query = repository.build_list_query(self.db, owner_id, **query_kwargs)
            total = query.count()
            data = [self.to_read(r, now) for r in query.offset(offset).limit(limit).all()]

        return ReminderListResponse(
            meta=ReminderListMeta(total=total, page=page, limit=limit, returned=len(data)),
            data=data,
        )

    def update(self, owner_id: int, raw_id: str, payload: ReminderUpdate) -> ReminderRead:
        updates = payload.model_dump(exclude_unset=True)

        if "status" in updates and updates["status"] not in REMINDER_STATUSES:
            raise ValidationError("Invalid status value")
        if "title" in updates:
            title = (updates["title"] or "").strip()
            if not title:
                raise ValidationError("title cannot be empty")
            updates["title"] = title
        if "date" in updates:
            updates["date"] = parse_optional_date(updates["date"])

        reminder = self._get_owned(owner_id, raw_id)
        reminder = repository.apply_updates(self.db, reminder, updates)
        logger.info(f"Reminder {reminder.id} updated ({', '.join(sorted(updates)) or 'no fields'})")
        return self.to_read(reminder)

    def delete(self, owner_id: int, raw_id: str) -> None:
        reminder = self._get_owned(owner_id, raw_id)
        repository.delete_reminder(self.db, reminder)
        logger.info(f"Reminder {raw_id} deleted by user {owner_id}")

    def mark_completed(self, owner_id: int, raw_id: str) -> ReminderRead:
        reminder = repository.mark_completed(self.db, self._get_owned(owner_id, raw_id))
        return self.to_read(reminder)

    def reconcile_overdue(self, owner_id: Optional[int] = None) -> ReconcileResult:
        """Persist ``overdue`` for every stored-upcoming reminder that already reads as overdue.

        Running it again right away changes nothing.
        """
        now = self.now()
        candidates = repository.get_overdue_candidates(self.db, now, owner_id=owner_id)
        overdue_ids = [r.id for r in candidates if effective_status_of(r, now) == OVERDUE]
        modified = repository.mark_overdue(self.db, overdue_ids)
        reminders_reconciled_total.inc(modified)
        scope = f"user {owner_id}" if owner_id is not None else "all users"
        logger.info(f"Reconciled overdue reminders for {scope}: matched={len(overdue_ids)} modified={modified}")
        return ReconcileResult(matched=len(overdue_ids), modified=modified)

    def status_counts(self, owner_id: int) -> Dict[str, int]:
        now = self.now()
        counts = {UPCOMING: 0, COMPLETED: 0, OVERDUE: 0}
        reminders = repository.list_for_owner(self.db, owner_id)
        for reminder in reminders:
            effective = effective_status_of(reminder, now)
            counts[effective] = counts.get(effective, 0) + 1
        counts["total"] = len(reminders)
        return counts
