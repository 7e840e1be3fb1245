import logging
import math
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from reviewdesk.database.crud.assignment_crud import assignment_crud
from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.event_crud import event_crud
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.crud.review_crud import review_crud
from reviewdesk.database.models import Assignment, Event, ResultStatus, utcnow
from reviewdesk.schemas.event import EventSummary, as_utc
from reviewdesk.schemas.review import AssignedPaperItem, ProgressSummary
from reviewdesk.schemas.user import UserSummary
from reviewdesk.workflow.errors import NotFoundError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _get_event(db: Session, event_id: Any) -> Event:
    event = event_crud.get(db, parse_id(event_id, "eventId"))
    if not event:
        raise NotFoundError("Event not found")
    return event


def reviewer_progress(
    db: Session, *, event_id: Any, reviewer_id: uuid.UUID
) -> Dict[str, Any]:
    """
    A reviewer's assigned papers in an event and how many they have reviewed.

    A paper counts as reviewed once any review row exists for it, regardless
    of its comments or decision.
    """
    event_uuid = parse_id(event_id, "eventId")
    assignments = assignment_crud.list_for_event(
        db, event_id=event_uuid, reviewer_id=reviewer_id
    )

    reviewed = review_crud.reviewed_pairs(
        db, paper_ids=[a.paper_id for a in assignments]
    )

    items: List[AssignedPaperItem] = []
    for assignment in assignments:
        paper = assignment.paper
        items.append(
            AssignedPaperItem(
                assignment_id=assignment.id,
                paper_id=paper.id,
                title=paper.title,
                track=paper.track,
                file_url=paper.file_url,
                insights=paper.insights or [],
                publisher=UserSummary.model_validate(paper.publisher)
                if paper.publisher
                else None,
                event=EventSummary.model_validate(paper.event) if paper.event else None,
                assigned_at=assignment.assigned_at,
                reviewed=(reviewer_id, paper.id) in reviewed,
            )
        )

    total_assigned = len(items)
    reviewed_count = sum(1 for item in items if item.reviewed)
    summary = ProgressSummary(
        total_assigned=total_assigned,
        reviewed_count=reviewed_count,
        pending_count=total_assigned - reviewed_count,
    )
    return {"summary": summary, "items": items}


def event_stats(db: Session, *, event_id: Any) -> Dict[str, Any]:
    event = _get_event(db, event_id)

    by_status = paper_crud.count_by_result_status(db, event_id=event.id)
    total = sum(by_status.values())
    pending = by_status.get(None, 0) + by_status.get(ResultStatus.SUBMITTED.value, 0)

    paper_ids = [paper.id for paper in paper_crud.list_for_event(db, event_id=event.id)]

    return {
        "papers": {
            "total": total,
            "selected": by_status.get(ResultStatus.SELECTED.value, 0),
            "rejected": by_status.get(ResultStatus.REJECTED.value, 0),
            "pending": pending,
        },
        "totalAssignments": assignment_crud.count_by(db, event_id=event.id),
        "distinctReviewers": assignment_crud.count_distinct_reviewers(
            db, event_id=event.id
        ),
        "totalReviews": review_crud.count_for_papers(db, paper_ids=paper_ids),
        "tracks": paper_crud.count_by_track(db, event_id=event.id),
    }


def deadline_days_left(
    deadline: Optional[datetime], now: Optional[datetime] = None
) -> Optional[int]:
    """Whole days until the deadline, rounded up. Negative once it has passed."""
    if deadline is None:
        return None
    now = as_utc(now) if now else utcnow()
    return math.ceil((as_utc(deadline) - now) / timedelta(days=1))


def pending_by_reviewer(
    db: Session, *, assignments: List[Assignment]
) -> "OrderedDict[uuid.UUID, Dict[str, Any]]":
    """
    Group assignments by reviewer with assigned, reviewed and pending counts.

    Reviewers keep the order in which they first appear in `assignments`.
    """
    reviewed = review_crud.reviewed_pairs(
        db, paper_ids=list({a.paper_id for a in assignments})
    )

    grouped: "OrderedDict[uuid.UUID, Dict[str, Any]]" = OrderedDict()
    for assignment in assignments:
        reviewer = assignment.reviewer
        if reviewer is None:
            continue
        entry = grouped.setdefault(
            reviewer.id,
            {"reviewer": reviewer, "assigned": 0, "reviewed": 0},
        )
        entry["assigned"] += 1
        if (reviewer.id, assignment.paper_id) in reviewed:
            entry["reviewed"] += 1

    for entry in grouped.values():
        entry["pending"] = entry["assigned"] - entry["reviewed"]
    return grouped


def pending_reviewers_report(
    db: Session, *, event_id: Any, now: Optional[datetime] = None
) -> Dict[str, Any]:
    event = _get_event(db, event_id)
    assignments = assignment_crud.list_for_event(db, event_id=event.id)

    items = [
        {
            "reviewerId": str(reviewer_id),
            "reviewerName": entry["reviewer"].name,
            "reviewerEmail": entry["reviewer"].email,
            "totalAssigned": entry["assigned"],
            "reviewedCount": entry["reviewed"],
            "pendingCount": entry["pending"],
        }
        for reviewer_id, entry in pending_by_reviewer(
            db, assignments=assignments
        ).items()
    ]

    summary = {
        "totalReviewers": len(items),
        "totalAssigned": sum(item["totalAssigned"] for item in items),
        "totalReviewed": sum(item["reviewedCount"] for item in items),
        "totalPending": sum(item["pendingCount"] for item in items),
    }

    deadline = as_utc(event.review_deadline)
    return {
        "event": {
            "title": event.title,
            "date": as_utc(event.date).isoformat(),
            "reviewDeadline": deadline.isoformat() if deadline else None,
            "deadlineDaysLeft": deadline_days_left(deadline, now),
        },
        "summary": summary,
        "items": items,
    }
