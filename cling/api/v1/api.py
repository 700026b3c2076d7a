from fastapi import APIRouter

from cling.api.v1.endpoints import otp_auth
from cling.api.v1.endpoints import dashboard
from cling.api.v1.endpoints import generation
from cling.reminders.api import router as reminders_router

api_router = APIRouter()

api_router.include_router(otp_auth.router, tags=["auth"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(reminders_router, prefix="/reminders", tags=["reminders"])
api_router.include_router(generation.router, tags=["generation"])
