from .auth import (
    SendOtpRequest, VerifyOtpRequest, MessageResponse, SessionUser,
    VerifyOtpResponse, LogoutResponse, SessionClaims,
)
from .reminder import (
    ReminderCreate, ReminderUpdate, ReminderRead, ReminderListMeta,
    ReminderListResponse, ReconcileResult, OkResponse,
)
from .dashboard import UserInfoResponse
from .image import (
    ImageGenerationRequest, ImageGenerationResponse, NoImageResponse,
    IconSuggestionRequest, IconSuggestionResponse,
)
