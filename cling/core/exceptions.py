"""
Application error taxonomy.

Services raise these; the handlers registered in ``cling.main`` turn them into
JSON responses of the form ``{"error": true, "message": ..., "status_code": ...}``.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"
    # Client-side failures are expected traffic and are not logged as errors
    log_as_error: bool = False

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_content(self) -> Dict[str, Any]:
        return {
            "error": True,
            "message": self.message,
            "status_code": self.status_code,
        }


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidOrExpiredCodeError(UnauthorizedError):
    default_message = "Invalid or expired OTP"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Too many requests"


class UpstreamError(AppError):
    """A third-party dependency (SMTP, Stability, Gemini) failed.

    ``detail`` is only echoed to the caller when ``expose_detail`` is set; the
    generation proxies do this on purpose so upstream error bodies are visible.
    """

    status_code = 502
    default_message = "Upstream service error"
    log_as_error = True

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Any = None,
        expose_detail: bool = False,
    ):
        super().__init__(message, status_code)
        self.detail = detail
        self.expose_detail = expose_detail

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        if self.expose_detail and self.detail is not None:
            content["detail"] = self.detail
        return content


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
    log_as_error = True
