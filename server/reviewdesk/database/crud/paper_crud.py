import logging
import uuid
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel
from reviewdesk.database.crud.base_crud import CRUDBase
from reviewdesk.database.models import Paper, PaperStatus, ResultStatus
from reviewdesk.schemas.paper import PaperCreate
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

logger = logging.getLogger(__name__)


class PaperUpdate(BaseModel):
    title: Optional[str] = None
    track: Optional[str] = None
    insights: Optional[List[str]] = None
    status: Optional[PaperStatus] = None
    admin_status: Optional[str] = None
    result_status: Optional[str] = None


# Paper CRUD that inherits from the base CRUD
class PaperCRUD(CRUDBase[Paper, PaperCreate, PaperUpdate]):
    """CRUD operations specifically for the Paper model"""

    def get_in_event(
        self, db: Session, *, paper_id: uuid.UUID, event_id: uuid.UUID
    ) -> Optional[Paper]:
        """Get a paper only if it was submitted to the given event."""
        return (
            db.query(Paper)
            .options(joinedload(Paper.publisher), joinedload(Paper.event))
            .filter(Paper.id == paper_id, Paper.event_id == event_id)
            .first()
        )

    def count_in_event(
        self, db: Session, *, event_id: uuid.UUID, paper_ids: Sequence[uuid.UUID]
    ) -> int:
        if not paper_ids:
            return 0
        return (
            db.query(Paper)
            .filter(Paper.id.in_(list(paper_ids)), Paper.event_id == event_id)
            .count()
        )

    def list_for_author(
        self,
        db: Session,
        *,
        author_id: uuid.UUID,
        event_id: Optional[uuid.UUID] = None,
    ) -> List[Paper]:
        query = (
            db.query(Paper)
            .options(joinedload(Paper.event))
            .filter(Paper.publisher_id == author_id)
        )
        if event_id is not None:
            query = query.filter(Paper.event_id == event_id)
        return query.order_by(Paper.created_at.desc()).all()

    def list_by_track(self, db: Session, *, track: str) -> List[Paper]:
        return (
            db.query(Paper)
            .filter(Paper.track == track)
            .order_by(Paper.created_at.desc())
            .all()
        )

    def list_all_with_publisher(self, db: Session) -> List[Paper]:
        return (
            db.query(Paper)
            .options(joinedload(Paper.publisher))
            .order_by(Paper.created_at.desc())
            .all()
        )

    def list_for_event(self, db: Session, *, event_id: uuid.UUID) -> List[Paper]:
        return db.query(Paper).filter(Paper.event_id == event_id).all()

    def list_selected(self, db: Session, *, event_id: uuid.UUID) -> List[Paper]:
        """Selected papers of an event with their authors loaded."""
        return (
            db.query(Paper)
            .options(joinedload(Paper.publisher))
            .filter(
                Paper.event_id == event_id,
                Paper.result_status == ResultStatus.SELECTED.value,
            )
            .order_by(Paper.created_at.asc())
            .all()
        )

    def count_selected(self, db: Session, *, event_id: uuid.UUID) -> int:
        return (
            db.query(Paper)
            .filter(
                Paper.event_id == event_id,
                Paper.result_status == ResultStatus.SELECTED.value,
            )
            .count()
        )

    def count_by_result_status(
        self, db: Session, *, event_id: uuid.UUID
    ) -> Dict[Optional[str], int]:
        rows = (
            db.query(Paper.result_status, func.count(Paper.id))
            .filter(Paper.event_id == event_id)
            .group_by(Paper.result_status)
            .all()
        )
        return {result_status: count for result_status, count in rows}

    def count_by_track(self, db: Session, *, event_id: uuid.UUID) -> Dict[str, int]:
        rows = (
            db.query(Paper.track, func.count(Paper.id))
            .filter(Paper.event_id == event_id)
            .group_by(Paper.track)
            .order_by(Paper.track.asc())
            .all()
        )
        return {track: count for track, count in rows}

    def set_status(
        self, db: Session, *, paper_id: uuid.UUID, status: PaperStatus
    ) -> Optional[Paper]:
        paper = db.query(Paper).filter(Paper.id == paper_id).first()
        if not paper:
            return None
        return self.update(db, db_obj=paper, obj_in={"status": status.value})

    def set_insights(
        self, db: Session, *, paper_id: uuid.UUID, insights: List[str]
    ) -> Optional[Paper]:
        """Store extracted insights and mark the paper's processing as done."""
        paper = db.query(Paper).filter(Paper.id == paper_id).first()
        if not paper:
            return None
        return self.update(
            db,
            db_obj=paper,
            obj_in={"insights": insights, "status": PaperStatus.REVIEWED.value},
        )


paper_crud = PaperCRUD(Paper)
