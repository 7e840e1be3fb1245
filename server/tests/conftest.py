import os

# Settings are read at import time, so the test environment goes in first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["COORDINATOR_EMAIL"] = "coordinator@example.com"
os.environ["S3_BUCKET_NAME"] = ""
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

import uuid  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Callable, Dict, Iterable, Optional  # noqa: E402
from unittest import mock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from reviewdesk.auth.tokens import sign_access_token  # noqa: E402
from reviewdesk.database.crud.assignment_crud import (  # noqa: E402
    AssignmentCreate,
    assignment_crud,
)
from reviewdesk.database.crud.event_crud import event_crud  # noqa: E402
from reviewdesk.database.crud.paper_crud import paper_crud  # noqa: E402
from reviewdesk.database.crud.user_crud import user_crud  # noqa: E402
from reviewdesk.database.database import SessionLocal, engine  # noqa: E402
from reviewdesk.database.models import Assignment, Base, Event, Paper, User  # noqa: E402
from reviewdesk.helpers.storage import storage_service  # noqa: E402
from reviewdesk.main import app  # noqa: E402
from reviewdesk.schemas.event import EventCreate  # noqa: E402
from reviewdesk.schemas.user import UserCreate  # noqa: E402

EVENT_DATE = datetime(2026, 12, 1, 9, 0, tzinfo=timezone.utc)
REVIEW_DEADLINE = datetime(2026, 11, 20, 0, 0, tzinfo=timezone.utc)
PASSWORD = "correct horse battery staple"


@pytest.fixture
def db():
    """A fresh schema on the shared in-memory database for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch) -> str:
    """Point local storage at a temporary directory."""
    path = str(tmp_path / "uploads")
    monkeypatch.setattr(storage_service, "upload_dir", path)
    monkeypatch.setattr(storage_service, "bucket_name", "")
    return path


@pytest.fixture
def enqueue_insight_job():
    """The upload route must not talk to a broker under test."""
    with mock.patch("reviewdesk.api.event_api.enqueue_insight_job") as mocked:
        yield mocked


@pytest.fixture
def client(db, upload_dir, enqueue_insight_job):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    def _make_user(
        name: str = "Test User",
        roles: Iterable[str] = ("author",),
        email: Optional[str] = None,
        contact_number: Optional[str] = None,
    ) -> User:
        email = email or f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@example.com"
        return user_crud.register(
            db,
            obj_in=UserCreate(
                name=name,
                email=email,
                password=PASSWORD,
                roles=list(roles),
                contact_number=contact_number,
            ),
        )

    return _make_user


@pytest.fixture
def coordinator(make_user) -> User:
    return make_user("Carla Coordinator", roles=["coordinator"])


@pytest.fixture
def author(make_user) -> User:
    return make_user("Arun Author", roles=["author"], contact_number="+39 040 123456")


@pytest.fixture
def reviewer(make_user) -> User:
    return make_user("Rita Reviewer", roles=["reviewer"])


@pytest.fixture
def other_reviewer(make_user) -> User:
    return make_user("Omar Reviewer", roles=["reviewer"])


@pytest.fixture
def make_event(db, coordinator) -> Callable[..., Event]:
    def _make_event(
        title: str = "Applied ML Symposium",
        date: datetime = EVENT_DATE,
        review_deadline: Optional[datetime] = REVIEW_DEADLINE,
    ) -> Event:
        return event_crud.create_for(
            db,
            obj_in=EventCreate(
                title=title,
                description=f"{title} call for papers",
                date=date,
                review_deadline=review_deadline,
            ),
            created_by=coordinator.id,
        )

    return _make_event


@pytest.fixture
def event(make_event) -> Event:
    return make_event()


@pytest.fixture
def make_paper(db, author) -> Callable[..., Paper]:
    def _make_paper(
        event: Event,
        title: str = "Sparse attention for long documents",
        track: str = "AI",
        publisher: Optional[User] = None,
        result_status: Optional[str] = None,
    ) -> Paper:
        data: Dict = {
            "title": title,
            "track": track,
            "file_url": f"uploads/papers/{uuid.uuid4().hex}.txt",
            "publisher_id": (publisher or author).id,
            "event_id": event.id,
        }
        if result_status is not None:
            data["result_status"] = result_status
        return paper_crud.create(db, obj_in=data)

    return _make_paper


@pytest.fixture
def assign(db, coordinator) -> Callable[..., Assignment]:
    def _assign(paper: Paper, reviewer: User) -> Assignment:
        return assignment_crud.create_unique(
            db,
            obj_in=AssignmentCreate(
                event_id=paper.event_id,
                paper_id=paper.id,
                reviewer_id=reviewer.id,
                assigned_by=coordinator.id,
            ),
        )

    return _assign


def auth_headers(user: User, roles: Optional[Iterable[str]] = None) -> Dict[str, str]:
    """Bearer header for `user`, optionally with token roles other than the stored ones."""
    token_roles = list(roles) if roles is not None else list(user.roles)
    return {"Authorization": f"Bearer {sign_access_token(str(user.id), token_roles)}"}


@pytest.fixture
def headers() -> Callable[..., Dict[str, str]]:
    return auth_headers
