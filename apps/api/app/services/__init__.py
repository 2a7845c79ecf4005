"""Service layer modules."""

from app.services.user_service import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    revoke_all_sessions,
)

# Import service modules (not individual functions) for cleaner access
from app.services import form_service
from app.services import submission_service

__all__ = [
    # User service
    "create_user",
    "get_user_by_email",
    "get_user_by_id",
    "revoke_all_sessions",
    # Service modules
    "form_service",
    "submission_service",
]
