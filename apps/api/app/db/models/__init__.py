"""SQLAlchemy ORM models."""

from app.db.models.auth import User
from app.db.models.forms import Form, Submission

__all__ = ["Form", "Submission", "User"]
