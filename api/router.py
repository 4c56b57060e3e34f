from fastapi import APIRouter
from api.endpoints.auth import router as auth_router
from api.endpoints.analyze import router as analyze_router
from api.endpoints.history import router as history_router
from api.endpoints.interview import router as interview_router
from api.endpoints.assistant import router as assistant_router
from api.endpoints.admin import router as admin_router
from api.endpoints.health import router as health_router

api_router = APIRouter()
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(analyze_router, tags=["analyze"])
api_router.include_router(history_router, tags=["history"])
api_router.include_router(interview_router, tags=["interview"])
api_router.include_router(assistant_router, tags=["assistant"])
api_router.include_router(admin_router, tags=["admin"])
api_router.include_router(health_router, tags=["health"])
