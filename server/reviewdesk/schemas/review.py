from datetime import datetime
from typing import List, Optional
from uuid import UUID

from reviewdesk.schemas.event import EventSummary
from reviewdesk.schemas.paper import PaperSummary
from reviewdesk.schemas.user import CamelModel, UserSummary


class ReviewSubmission(CamelModel):
    comments: Optional[str] = None
    insights: Optional[List[str]] = None


class Review(CamelModel):
    id: UUID
    paper_id: UUID
    reviewer_id: UUID
    comments: str
    insights: List[str] = []
    decision: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewWithReviewer(Review):
    reviewer: Optional[UserSummary] = None


class AssignRequest(CamelModel):
    reviewer_id: Optional[str] = None
    paper_ids: List[str] = []


class AssignmentResult(CamelModel):
    created: int
    skipped: int


class Assignment(CamelModel):
    id: UUID
    event_id: UUID
    paper_id: UUID
    reviewer_id: UUID
    assigned_by: UUID
    assigned_at: datetime
    paper: Optional[PaperSummary] = None
    reviewer: Optional[UserSummary] = None


class AssignedPaperItem(CamelModel):
    assignment_id: UUID
    paper_id: UUID
    title: str
    track: str
    file_url: str
    insights: List[str] = []
    publisher: Optional[UserSummary] = None
    event: Optional[EventSummary] = None
    assigned_at: datetime
    reviewed: bool


class ProgressSummary(CamelModel):
    total_assigned: int
    reviewed_count: int
    pending_count: int


class AcceptedRow(CamelModel):
    reviewer_name: str
    track: str
    author_email: str
    contact_number: str
