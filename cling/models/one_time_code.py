from sqlalchemy import Column, Integer, String, DateTime, Index
from cling.db.base import Base
from cling.utils.timezone import utcnow


class OneTimeCode(Base):
    """A hashed login code. Several may be outstanding for one email."""
    __tablename__ = "one_time_codes"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), nullable=False, index=True)
    # SHA-256 hex digest of the plaintext code
    code_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_one_time_codes_email_created", "email", "created_at"),
    )
