from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from cling.models.one_time_code import OneTimeCode


class CRUDOneTimeCode:
    def create(
        self, db: Session, *, email: str, code_hash: str, expires_at: datetime, created_at: datetime
    ) -> OneTimeCode:
        db_obj = OneTimeCode(
            email=email,
            code_hash=code_hash,
            expires_at=expires_at,
            created_at=created_at,
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_latest_for_email(self, db: Session, *, email: str) -> Optional[OneTimeCode]:
        return (
            db.query(OneTimeCode)
            .filter(OneTimeCode.email == email)
            .order_by(OneTimeCode.created_at.desc(), OneTimeCode.id.desc())
            .first()
        )

    def get_recent_for_email(self, db: Session, *, email: str, limit: int) -> List[OneTimeCode]:
        """Newest first"""
        return (
            db.query(OneTimeCode)
            .filter(OneTimeCode.email == email)
            .order_by(OneTimeCode.created_at.desc(), OneTimeCode.id.desc())
            .limit(limit)
            .all()
        )

    def delete_all_for_email(self, db: Session, *, email: str) -> int:
        deleted = (
            db.query(OneTimeCode)
            .filter(OneTimeCode.email == email)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    def count_for_email(self, db: Session, *, email: str) -> int:
        return db.query(OneTimeCode).filter(OneTimeCode.email == email).count()


one_time_code = CRUDOneTimeCode()
