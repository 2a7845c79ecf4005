"""FastAPI dependencies for authentication, database access and collaborators."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.security import decode_session_token
from app.db.session import SessionLocal
from app.schemas.auth import CurrentUser, TokenPayload
from app.services.ai_provider import AIProvider, AIProviderNotConfiguredError, build_ai_provider
from app.services.media_store import MediaStore, build_media_store


# Cookie and header names
COOKIE_NAME = "form_session"
BEARER_PREFIX = "bearer "


def get_settings() -> Settings:
    return settings


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _session_token(request: Request) -> str | None:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None
    return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Get authenticated creator from the session cookie or bearer token.

    Validates:
    - Token exists
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Raises:
        HTTPException 401: Authentication failed
    """
    from app.db.models import User

    token = _session_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = TokenPayload.model_validate(decode_session_token(token))
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.query(User).filter(User.id == payload.sub).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.token_version:
        raise HTTPException(status_code=401, detail="Session revoked")

    return CurrentUser(user_id=user.id, email=user.email, name=user.name)


def get_media_store(app_settings: Settings = Depends(get_settings)) -> MediaStore:
    return build_media_store(app_settings)


def get_ai_provider(app_settings: Settings = Depends(get_settings)) -> AIProvider:
    """
    AI provider built from settings.

    Raises:
        HTTPException 500: No API key configured
    """
    try:
        return build_ai_provider(app_settings)
    except AIProviderNotConfiguredError as exc:
        raise HTTPException(status_code=500, detail="AI provider not configured") from exc
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
