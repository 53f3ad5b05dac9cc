from .auth import router as auth_router
from .profile import router as profile_router
from .imports import router as imports_router
from .resumes import router as resumes_router
from .sync import router as sync_router
from .tailor import router as tailor_router

__all__ = [
    "auth_router", "profile_router", "imports_router", "resumes_router", "sync_router", "tailor_router"
]
