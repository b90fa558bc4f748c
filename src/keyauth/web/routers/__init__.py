from keyauth.web.routers.profile import router as profile_router
from keyauth.web.routers.session import router as session_router

__all__ = [
    "profile_router",
    "session_router",
]
