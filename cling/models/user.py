from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from cling.db.base import Base
from cling.utils.timezone import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    reminders = relationship("Reminder", back_populates="owner", cascade="all, delete-orphan")
