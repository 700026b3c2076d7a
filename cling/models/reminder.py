import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from cling.db.base import Base
from cling.utils.timezone import utcnow


REMINDER_STATUSES = ("upcoming", "completed", "overdue")


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, nullable=True, index=True)
    time = Column(String(16), nullable=True)  # "HH:MM" or "HH:MM:SS"
    device = Column(String(255), nullable=True)
    category = Column(String(255), nullable=True)
    icon_image_url = Column(Text, nullable=True)
    # Stored value only; read paths project the effective status
    status = Column(String(16), nullable=False, default="upcoming", index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="reminders")

    __table_args__ = (
        Index("ix_reminders_owner_date", "owner_id", "date"),
        Index("ix_reminders_status_date", "status", "date"),
    )
