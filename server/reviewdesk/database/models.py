import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (  # type: ignore
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship  # type: ignore
from sqlalchemy.sql import func

# Special notes:
# - All models inherit from the `Base` class, which provides common fields and methods.
# - Timestamps are set on the Python side as well as the server side so that
#   `updated_at` keeps sub-second precision. The accepted-paper report orders
#   reviews by it.
# - A Paper carries three status columns. They are orthogonal and nothing
#   enforces a relation between them:
#     `status`        -> driven by the insight extraction job only
#     `admin_status`  -> the coordinator's approval gate
#     `result_status` -> the author-visible outcome of the review process
# - List-valued columns use the generic JSON type so the schema works on both
#   PostgreSQL and SQLite.


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"


class Role(str, Enum):
    AUTHOR = "author"
    REVIEWER = "reviewer"
    COORDINATOR = "coordinator"


class PaperStatus(str, Enum):
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    REVIEWED = "reviewed"


class AdminStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ResultStatus(str, Enum):
    SUBMITTED = "submitted"
    SELECTED = "selected"
    REJECTED = "rejected"
    RESULT_OUT = "resultOut"


class ReviewDecision(str, Enum):
    PENDING = "pending"
    SELECTED = "selected"
    REJECTED = "rejected"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)  # hashed
    roles = Column(JSON, nullable=False, default=lambda: [Role.AUTHOR.value])
    contact_number = Column(String, nullable=True)

    papers = relationship("Paper", back_populates="publisher")
    events = relationship("Event", back_populates="creator")


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    review_deadline = Column(DateTime(timezone=True), nullable=True)
    banner_url = Column(String, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    creator = relationship("User", back_populates="events")
    papers = relationship(
        "Paper", back_populates="event", cascade="all, delete-orphan"
    )
    assignments = relationship(
        "Assignment", back_populates="event", cascade="all, delete-orphan"
    )


class Paper(Base):
    __tablename__ = "papers"

    __table_args__ = (
        Index("ix_papers_track_created_at", "track", "created_at"),
        Index("ix_papers_publisher_created_at", "publisher_id", "created_at"),
        Index("ix_papers_event_result_status", "event_id", "result_status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    track = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    publisher_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    event_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    insights = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default=PaperStatus.SUBMITTED.value)
    admin_status = Column(String, nullable=False, default=AdminStatus.PENDING.value)
    result_status = Column(
        String, nullable=True, default=ResultStatus.SUBMITTED.value
    )

    publisher = relationship("User", back_populates="papers")
    event = relationship("Event", back_populates="papers")
    assignments = relationship(
        "Assignment", back_populates="paper", cascade="all, delete-orphan"
    )
    reviews = relationship(
        "Review", back_populates="paper", cascade="all, delete-orphan"
    )


class Assignment(Base):
    __tablename__ = "assignments"

    # A reviewer can't be assigned the same paper twice within an event
    __table_args__ = (
        UniqueConstraint(
            "event_id", "paper_id", "reviewer_id", name="uq_assignment_event_paper_reviewer"
        ),
        Index("ix_assignments_reviewer_event", "reviewer_id", "event_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    paper_id = Column(
        Uuid(as_uuid=True), ForeignKey("papers.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    assigned_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="assignments")
    paper = relationship("Paper", back_populates="assignments")
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    assigner = relationship("User", foreign_keys=[assigned_by])


class Review(Base):
    __tablename__ = "reviews"

    # One review per (paper, reviewer); writes go through an upsert on this key
    __table_args__ = (
        UniqueConstraint("paper_id", "reviewer_id", name="uq_review_paper_reviewer"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    paper_id = Column(
        Uuid(as_uuid=True), ForeignKey("papers.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    comments = Column(Text, nullable=False, default="")
    insights = Column(JSON, nullable=False, default=list)
    decision = Column(String, nullable=False, default=ReviewDecision.PENDING.value)

    paper = relationship("Paper", back_populates="reviews")
    reviewer = relationship("User")
