import logging
import uuid
from typing import List, Optional, Sequence

from pydantic import BaseModel
from reviewdesk.database.crud.base_crud import CRUDBase
from reviewdesk.database.models import Assignment, Paper
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

logger = logging.getLogger(__name__)


class AssignmentCreate(BaseModel):
    event_id: uuid.UUID
    paper_id: uuid.UUID
    reviewer_id: uuid.UUID
    assigned_by: uuid.UUID


class AssignmentUpdate(BaseModel):  # Assignments are never updated
    pass


class AssignmentCRUD(CRUDBase[Assignment, AssignmentCreate, AssignmentUpdate]):
    def create_unique(
        self, db: Session, *, obj_in: AssignmentCreate
    ) -> Optional[Assignment]:
        """
        Insert one assignment row.

        Returns None when the (event, paper, reviewer) triple already exists.
        The unique constraint decides, so concurrent callers can't both win.
        """
        db_obj = Assignment(**obj_in.model_dump())
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(
                f"Reviewer {obj_in.reviewer_id} already assigned to paper {obj_in.paper_id} "
                f"in event {obj_in.event_id}"
            )
            return None
        db.refresh(db_obj)
        return db_obj

    def exists(
        self,
        db: Session,
        *,
        event_id: uuid.UUID,
        paper_id: uuid.UUID,
        reviewer_id: uuid.UUID,
    ) -> bool:
        return (
            db.query(Assignment.id)
            .filter(
                Assignment.event_id == event_id,
                Assignment.paper_id == paper_id,
                Assignment.reviewer_id == reviewer_id,
            )
            .first()
            is not None
        )

    def list_for_event(
        self,
        db: Session,
        *,
        event_id: uuid.UUID,
        reviewer_id: Optional[uuid.UUID] = None,
    ) -> List[Assignment]:
        """Assignments of an event, newest first, with paper and reviewer loaded."""
        query = (
            db.query(Assignment)
            .options(
                joinedload(Assignment.paper).joinedload(Paper.publisher),
                joinedload(Assignment.paper).joinedload(Paper.event),
                joinedload(Assignment.reviewer),
            )
            .filter(Assignment.event_id == event_id)
        )
        if reviewer_id is not None:
            query = query.filter(Assignment.reviewer_id == reviewer_id)
        return query.order_by(Assignment.created_at.desc()).all()

    def list_all(self, db: Session) -> List[Assignment]:
        return (
            db.query(Assignment)
            .options(
                joinedload(Assignment.event),
                joinedload(Assignment.paper),
                joinedload(Assignment.reviewer),
            )
            .order_by(Assignment.created_at.desc())
            .all()
        )

    def count_distinct_reviewers(self, db: Session, *, event_id: uuid.UUID) -> int:
        return (
            db.query(Assignment.reviewer_id)
            .filter(Assignment.event_id == event_id)
            .distinct()
            .count()
        )

    def paper_ids_for_event(
        self, db: Session, *, event_id: uuid.UUID
    ) -> Sequence[uuid.UUID]:
        rows = (
            db.query(Assignment.paper_id)
            .filter(Assignment.event_id == event_id)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]


assignment_crud = AssignmentCRUD(Assignment)
