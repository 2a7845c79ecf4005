"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database (tables emptied after each test)
- JWT token minting for authenticated tests
- HTTPX AsyncClient with media store and AI provider overrides
"""
import os
import tempfile
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Settings are read at import time; point them at throwaway resources first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="ai-forms-test-")
os.environ["AI_API_KEY"] = ""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from app.main import app
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.deps import COOKIE_NAME, get_ai_provider, get_db, get_media_store
from app.core.security import create_session_token
from app.db.models import Form, User
from app.services import form_service
from app.services.ai_provider import AIProvider, ChatMessage, ChatResponse
from app.services.form_schema_service import accept_form_schema
from app.services.media_store import LocalMediaStore


# =============================================================================
# Database Fixtures
# =============================================================================

Base.metadata.create_all(bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Database session for one test.

    App code commits freely; every table is emptied afterwards.
    """
    session = SessionLocal()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    """Create a form creator."""
    user = User(
        id=uuid.uuid4(),
        email=f"test-{uuid.uuid4().hex[:8]}@test.com",
        name="Test User",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    """A second creator, for ownership checks."""
    user = User(
        id=uuid.uuid4(),
        email=f"other-{uuid.uuid4().hex[:8]}@test.com",
        name="Other User",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


SAMPLE_SCHEMA = {
    "title": "Job Application",
    "description": "Apply for a role",
    "fields": [
        {"name": "full_name", "label": "Full Name", "type": "text", "required": True,
         "validation": {"minLength": 2, "maxLength": 10}},
        {"name": "age", "label": "Age", "type": "number", "required": False,
         "validation": {"min": 5, "max": 99}},
        {"name": "skills", "label": "Skills", "type": "checkbox", "required": False,
         "options": ["python", "sql", "go"]},
        {"name": "resume", "label": "Resume", "type": "file", "required": True,
         "fileConfig": {"accept": ".pdf,.txt", "maxSize": 1048576, "multiple": False}},
    ],
}


@pytest.fixture(scope="function")
def make_form(db: Session):
    """Factory for stored forms built from SAMPLE_SCHEMA."""
    def _make(user: User, title: str = SAMPLE_SCHEMA["title"], **overrides) -> Form:
        schema = accept_form_schema(dict(SAMPLE_SCHEMA, title=title, **overrides))
        return form_service.create_form(db, creator_id=user.id, schema=schema, prompt=title)
    return _make


@pytest.fixture(scope="function")
def sample_form(make_form, test_user: User) -> Form:
    """A public form owned by test_user."""
    return make_form(test_user)


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def media_store(tmp_path) -> LocalMediaStore:
    return LocalMediaStore(str(tmp_path / "media"), "http://test/media")


class FakeAIProvider(AIProvider):
    """Returns canned replies and records the prompts it saw."""

    def __init__(self, replies: list[str] | None = None):
        self.replies = list(replies or [])
        self.calls: list[list[ChatMessage]] = []

    async def chat(self, messages, model=None, temperature=0.7, max_tokens=4000):
        self.calls.append(messages)
        content = self.replies.pop(0) if self.replies else ""
        return ChatResponse(
            content=content,
            prompt_tokens=10,
            completion_tokens=20,
            total_tokens=30,
            model=model or "fake-model",
        )


@pytest.fixture(scope="function")
def fake_ai() -> FakeAIProvider:
    return FakeAIProvider()


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User) -> TestAuth:
    """Create JWT token for test user."""
    token = create_session_token(user_id=test_user.id, token_version=test_user.token_version)
    return TestAuth(user=test_user, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

def _override_dependencies(db: Session, media_store: LocalMediaStore, fake_ai: FakeAIProvider) -> None:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: media_store
    app.dependency_overrides[get_ai_provider] = lambda: fake_ai


@pytest.fixture(scope="function")
async def client(
    db: Session, media_store: LocalMediaStore, fake_ai: FakeAIProvider
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    _override_dependencies(db, media_store, fake_ai)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth,
    media_store: LocalMediaStore,
    fake_ai: FakeAIProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient with the session cookie.
    """
    _override_dependencies(db, media_store, fake_ai)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
    ) as c:
        yield c

    app.dependency_overrides.clear()
