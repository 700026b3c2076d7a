from typing import Optional

from fastapi import Depends, Request

from cling.core import security
from cling.core.exceptions import UnauthorizedError
from cling.schemas.auth import SessionClaims
from cling.services.email_service import EmailService
from cling.services.icon_suggestions import IconSuggestionService
from cling.services.image_generation import ImageGenerationService


def get_email_service() -> EmailService:
    return EmailService()


def get_image_generation_service() -> ImageGenerationService:
    return ImageGenerationService()


def get_icon_suggestion_service() -> IconSuggestionService:
    return IconSuggestionService()


def get_optional_session(request: Request) -> Optional[SessionClaims]:
    return security.resolve_session_from_cookie_header(request.headers.get("cookie"))


def get_current_session(
    claims: Optional[SessionClaims] = Depends(get_optional_session),
) -> SessionClaims:
    if claims is None:
        raise UnauthorizedError("Unauthorized")
    return claims
