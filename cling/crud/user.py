import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from cling.models.user import User

logger = logging.getLogger(__name__)


class CRUDUser:
    def get(self, db: Session, id: int) -> Optional[User]:
        return db.query(User).filter(User.id == id).first()

    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def create(self, db: Session, *, email: str, name: Optional[str] = None) -> User:
        db_obj = User(email=email, name=name)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_or_create_by_email(self, db: Session, *, email: str) -> User:
        """Return the user for ``email``, creating it on first sight.

        Two concurrent first logins can both miss the read; the loser of the
        unique-constraint race re-reads the winner's row.
        """
        existing = self.get_by_email(db, email=email)
        if existing:
            return existing
        try:
            return self.create(db, email=email)
        except IntegrityError:
            db.rollback()
            logger.info(f"User {email} created concurrently, re-reading")
            user = self.get_by_email(db, email=email)
            if user is None:
                raise
            return user


# Create instance that can be imported directly
user = CRUDUser()
