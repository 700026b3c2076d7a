from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from cling.api import deps
from cling.core.auth_service import OtpAuthService
from cling.core.config import settings
from cling.db.session import get_db
from cling.schemas.auth import (
    LogoutResponse, MessageResponse, SendOtpRequest, SessionUser,
    VerifyOtpRequest, VerifyOtpResponse,
)
from cling.services.email_service import EmailService

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value="",
        max_age=0,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


@router.post("/send-otp", response_model=MessageResponse)
def send_otp(
    *,
    db: Session = Depends(get_db),
    otp_data: SendOtpRequest,
    email_service: EmailService = Depends(deps.get_email_service),
) -> Any:
    """
    Email a one-time login code. Subject to a per-email resend cooldown.
    """
    OtpAuthService(db, email_service=email_service).request_otp(otp_data.email)
    return MessageResponse(message="OTP sent")


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(
    *,
    db: Session = Depends(get_db),
    response: Response,
    verify_data: VerifyOtpRequest,
    email_service: EmailService = Depends(deps.get_email_service),
) -> Any:
    """
    Exchange a valid code for a session cookie.
    """
    token, user = OtpAuthService(db, email_service=email_service).verify_otp(
        verify_data.email, verify_data.otp
    )
    _set_session_cookie(response, token)
    return VerifyOtpResponse(message="Logged in", user=SessionUser.model_validate(user))


@router.post("/logout", response_model=LogoutResponse)
def logout(response: Response) -> Any:
    _clear_session_cookie(response)
    return LogoutResponse()
