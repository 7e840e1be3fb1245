import logging
import uuid
from typing import Any, List, Optional, Sequence

from reviewdesk.database.crud.assignment_crud import AssignmentCreate, assignment_crud
from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.event_crud import event_crud
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.crud.user_crud import user_crud
from reviewdesk.database.models import Assignment
from reviewdesk.schemas.review import AssignmentResult
from reviewdesk.workflow.errors import NotFoundError, ValidationError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def assign_reviewer(
    db: Session,
    *,
    event_id: Any,
    reviewer_id: Any,
    paper_ids: Optional[Sequence[Any]],
    assigned_by: uuid.UUID,
) -> AssignmentResult:
    """
    Assign a batch of papers in an event to one reviewer.

    Every paper is inserted on its own. Pairs that already exist are counted as
    skipped and the batch carries on, so a retried request is harmless. The
    reviewer's roles are not checked.
    """
    if not reviewer_id or not paper_ids:
        raise ValidationError("Missing reviewerId/paperIds")

    event_uuid = parse_id(event_id, "eventId")
    reviewer_uuid = parse_id(reviewer_id, "reviewerId")
    paper_uuids = [parse_id(pid, "paperId") for pid in paper_ids]

    if not event_crud.get(db, event_uuid):
        raise NotFoundError("Event not found")
    if not user_crud.get(db, reviewer_uuid):
        raise NotFoundError("Reviewer not found")

    distinct_ids = list(dict.fromkeys(paper_uuids))
    found = paper_crud.count_in_event(db, event_id=event_uuid, paper_ids=distinct_ids)
    if found != len(distinct_ids):
        raise ValidationError("One or more papers do not belong to this event")

    created = 0
    skipped = 0
    for paper_uuid in paper_uuids:
        assignment = assignment_crud.create_unique(
            db,
            obj_in=AssignmentCreate(
                event_id=event_uuid,
                paper_id=paper_uuid,
                reviewer_id=reviewer_uuid,
                assigned_by=assigned_by,
            ),
        )
        if assignment is None:
            skipped += 1
        else:
            created += 1

    logger.info(
        f"Assigned reviewer {reviewer_uuid} in event {event_uuid}: "
        f"{created} created, {skipped} skipped"
    )
    return AssignmentResult(created=created, skipped=skipped)


def list_assignments(
    db: Session, *, event_id: Any, reviewer_id: Optional[Any] = None
) -> List[Assignment]:
    event_uuid = parse_id(event_id, "eventId")
    reviewer_uuid = parse_id(reviewer_id, "reviewerId") if reviewer_id else None
    return assignment_crud.list_for_event(
        db, event_id=event_uuid, reviewer_id=reviewer_uuid
    )
