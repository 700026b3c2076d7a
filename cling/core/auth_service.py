"""
Email one-time-code login.

Codes are stored hashed in ``one_time_codes``; the plaintext only ever leaves
the process in the outgoing email.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from cling.core import security
from cling.core.config import settings
from cling.core.exceptions import InvalidOrExpiredCodeError, RateLimitedError, ValidationError
from cling.core.metrics import otp_rate_limited_total, otp_requests_total, otp_verifications_total
from cling.crud import one_time_code as otp_crud
from cling.crud import user as user_crud
from cling.models.user import User
from cling.services.email_service import EmailService
from cling.utils.timezone import utcnow

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    normalized = (email or "").strip().lower()
    if not normalized or "@" not in normalized:
        raise ValidationError("Valid email is required")
    return normalized


class OtpAuthService:
    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.email_service = email_service or EmailService()
        self.now = now

    def request_otp(self, email: str) -> None:
        """Issue a code for ``email`` and mail it.

        The stored record survives a failed delivery; the caller sees the
        UpstreamError and may ask again once the cooldown passes.
        """
        email = _normalize_email(email)
        now = self.now()

        latest = otp_crud.get_latest_for_email(self.db, email=email)
        if latest is not None:
            elapsed = (now - latest.created_at).total_seconds()
            cooldown = settings.OTP_RESEND_COOLDOWN_SECONDS
            if elapsed < cooldown:
                wait = max(1, math.ceil(cooldown - elapsed))
                otp_rate_limited_total.inc()
                logger.info(f"OTP request for {email} rate limited ({wait}s remaining)")
                raise RateLimitedError(f"Please wait {wait} second(s) before requesting again.")

        code = security.generate_otp()
        otp_crud.create(
            self.db,
            email=email,
            code_hash=security.hash_otp(code),
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
            created_at=now,
        )
        otp_requests_total.inc()
        logger.info(f"Issued OTP for {email}")

        self.email_service.send_otp_email(email, code, settings.OTP_EXPIRY_MINUTES)

    def verify_otp(self, email: str, otp: str) -> Tuple[str, User]:
        """Check ``otp`` against the newest codes for ``email``.

        Returns ``(session_token, user)``. Wrong and expired codes are
        reported identically.
        """
        email = _normalize_email(email)
        otp = (otp or "").strip()
        if not otp:
            raise ValidationError("Email and OTP are required")

        now = self.now()
        candidates = otp_crud.get_recent_for_email(
            self.db, email=email, limit=settings.OTP_VERIFY_LOOKBACK
        )
        if not candidates:
            otp_verifications_total.labels(outcome="no_code").inc()
            raise InvalidOrExpiredCodeError()

        matched = next(
            (
                record for record in candidates
                if security.otp_matches(otp, record.code_hash) and record.expires_at > now
            ),
            None,
        )
        if matched is None:
            otp_verifications_total.labels(outcome="rejected").inc()
            logger.info(f"OTP verification failed for {email}")
            raise InvalidOrExpiredCodeError()

        otp_crud.delete_all_for_email(self.db, email=email)
        user = user_crud.get_or_create_by_email(self.db, email=email)
        token = security.create_session_token(user.id, user.email)

        otp_verifications_total.labels(outcome="success").inc()
        logger.info(f"User {user.id} logged in via OTP")
        return token, user
