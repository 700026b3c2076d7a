import logging
from typing import Dict, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from cling.db import session as db_session
from .service import ReminderService

logger = logging.getLogger(__name__)


def run_reconcile(user_id: Optional[int] = None) -> Dict[str, int]:
    db: Session = db_session.SessionLocal()
    try:
        result = ReminderService(db).reconcile_overdue(owner_id=user_id)
        return result.model_dump()
    finally:
        db.close()


@shared_task(name="reminders.reconcile_overdue")
def reconcile_overdue_task(user_id: Optional[int] = None) -> Dict[str, int]:
    """Persist overdue status for all users, or one user when ``user_id`` is given."""
    return run_reconcile(user_id)
