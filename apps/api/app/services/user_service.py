"""User service - creator accounts and session revocation."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import User


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(db: Session, email: str, name: str) -> User:
    """
    Create a form creator.

    Raises:
        ValueError: If the email is already taken
    """
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ValueError(f"User already exists: {email}")
    user = User(email=email, name=name.strip() or email)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Revoke all sessions for a user by bumping token_version.

    Returns:
        True if user found and sessions revoked, False if user not found
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False
    user.token_version += 1
    db.commit()
    return True
