"""API routers."""

from app.routers.ai import router as ai_router
from app.routers.forms import router as forms_router
from app.routers.submissions import router as submissions_router

__all__ = [
    "ai_router",
    "forms_router",
    "submissions_router",
]
