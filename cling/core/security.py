import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import cookie_parser

from cling.core.config import settings
from cling.schemas.auth import SessionClaims
from cling.utils.timezone import utcnow

logger = logging.getLogger(__name__)

# Export the algorithm constant for use in other modules
ALGORITHM = settings.ALGORITHM


def generate_otp() -> str:
    """Six digits, uniform over 100000..999999"""
    return str(100000 + secrets.randbelow(900000))


def hash_otp(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def otp_matches(code: str, code_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(code), code_hash)


def create_session_token(
    user_id: int, email: str, expires_delta: Optional[timedelta] = None, now: Optional[datetime] = None
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    expire = (now or utcnow()) + expires_delta
    to_encode = {"sub": str(user_id), "email": email, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[SessionClaims]:
    """Verify signature and expiry; ``None`` for anything that does not check out."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected session token: {e}")
        return None
    try:
        return SessionClaims(sub=payload.get("sub"), email=payload.get("email"))
    except PydanticValidationError:
        logger.debug("Session token is missing sub/email claims")
        return None


def resolve_session_from_cookie_header(raw_cookie_header: Optional[str]) -> Optional[SessionClaims]:
    """Extract the session cookie from a raw ``Cookie`` header and decode it. Never raises."""
    if not raw_cookie_header:
        return None
    return decode_session_token(cookie_parser(raw_cookie_header).get(settings.SESSION_COOKIE_NAME))
