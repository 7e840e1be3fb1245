import logging
import uuid
from typing import Any, Iterable, List, Optional

from reviewdesk.auth.roles import is_coordinator
from reviewdesk.database.crud.assignment_crud import assignment_crud
from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.crud.review_crud import review_crud
from reviewdesk.database.models import Paper, Review, ReviewDecision
from reviewdesk.schemas.paper import RESULT_DECISIONS
from reviewdesk.workflow.errors import AuthorizationError, NotFoundError, ValidationError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _paper_in_event(db: Session, paper_id: uuid.UUID, event_id: uuid.UUID) -> Paper:
    paper = paper_crud.get_in_event(db, paper_id=paper_id, event_id=event_id)
    if not paper:
        raise NotFoundError("Paper not found in this event")
    return paper


def _require_assignment(
    db: Session, event_id: uuid.UUID, paper_id: uuid.UUID, reviewer_id: uuid.UUID
) -> None:
    if not assignment_crud.exists(
        db, event_id=event_id, paper_id=paper_id, reviewer_id=reviewer_id
    ):
        raise AuthorizationError("Not assigned to this paper")


def submit_review(
    db: Session,
    *,
    event_id: Any,
    paper_id: Any,
    reviewer_id: uuid.UUID,
    comments: Optional[str],
    insights: Optional[List[str]] = None,
) -> Review:
    """
    Create or replace the caller's review of a paper.

    Only comments and insights are written. An existing decision is left as it
    was, and a new row starts out pending.
    """
    if not comments or not comments.strip():
        raise ValidationError("comments required")

    event_uuid = parse_id(event_id, "eventId")
    paper_uuid = parse_id(paper_id, "paperId")

    _paper_in_event(db, paper_uuid, event_uuid)
    _require_assignment(db, event_uuid, paper_uuid, reviewer_id)

    review = review_crud.upsert_content(
        db,
        paper_id=paper_uuid,
        reviewer_id=reviewer_id,
        comments=comments,
        insights=list(insights) if isinstance(insights, list) else [],
    )
    logger.info(f"Review saved for paper {paper_uuid} by reviewer {reviewer_id}")
    return review


def decide(
    db: Session,
    *,
    event_id: Any,
    paper_id: Any,
    actor_id: uuid.UUID,
    actor_roles: Iterable[str],
    result_status: Optional[str],
) -> Paper:
    """
    Record a selected/rejected outcome for a paper.

    Coordinators (or the legacy admin label) may decide any paper in the event
    and never touch review rows. Anyone else must be assigned to the paper, and
    their decision is mirrored onto their own review.
    """
    if result_status not in RESULT_DECISIONS:
        raise ValidationError("Invalid resultStatus")

    event_uuid = parse_id(event_id, "eventId")
    paper_uuid = parse_id(paper_id, "paperId")

    paper = _paper_in_event(db, paper_uuid, event_uuid)

    coordinator = is_coordinator(actor_roles)
    if not coordinator:
        _require_assignment(db, event_uuid, paper_uuid, actor_id)

    # Paper status and the mirrored review land in one transaction
    try:
        paper_crud.update(
            db, db_obj=paper, obj_in={"result_status": result_status}, commit=False
        )
        if not coordinator:
            review_crud.upsert_decision(
                db,
                paper_id=paper_uuid,
                reviewer_id=actor_id,
                decision=ReviewDecision(result_status),
                commit=False,
            )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to record decision on paper {paper_uuid}: {e}", exc_info=True)
        raise

    logger.info(
        f"Paper {paper_uuid} marked {result_status} by "
        f"{'coordinator' if coordinator else 'reviewer'} {actor_id}"
    )
    # Reload so publisher and event come back with the response
    return paper_crud.get_in_event(db, paper_id=paper_uuid, event_id=event_uuid)
