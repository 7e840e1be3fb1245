from datetime import datetime
from typing import List, Optional
from uuid import UUID

from reviewdesk.database.models import AdminStatus, ResultStatus
from reviewdesk.schemas.event import EventSummary
from reviewdesk.schemas.user import CamelModel, UserSummary


class PaperCreate(CamelModel):
    title: str
    track: str
    file_url: str
    publisher_id: UUID
    event_id: UUID


class PaperSummary(CamelModel):
    id: UUID
    title: str
    track: str
    file_url: str
    insights: List[str] = []
    status: str
    admin_status: str
    result_status: Optional[str] = None


class Paper(PaperSummary):
    publisher_id: UUID
    event_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paper with its author and event resolved
class PaperDetail(Paper):
    publisher: Optional[UserSummary] = None
    event: Optional[EventSummary] = None


class AdminStatusUpdate(CamelModel):
    status: Optional[str] = None


class DecisionRequest(CamelModel):
    # Validated by the workflow so the error shape matches other validation failures
    result_status: Optional[str] = None


RESULT_DECISIONS = (ResultStatus.SELECTED.value, ResultStatus.REJECTED.value)
ADMIN_DECISIONS = (AdminStatus.APPROVED.value, AdminStatus.REJECTED.value)
