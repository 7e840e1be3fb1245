import logging
import uuid
from typing import Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel
from reviewdesk.database.crud.base_crud import CRUDBase
from reviewdesk.database.models import Review, ReviewDecision, utcnow
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, joinedload

logger = logging.getLogger(__name__)


class ReviewCreate(BaseModel):
    paper_id: uuid.UUID
    reviewer_id: uuid.UUID
    comments: str = ""
    insights: List[str] = []
    decision: ReviewDecision = ReviewDecision.PENDING


class ReviewUpdate(BaseModel):
    comments: Optional[str] = None
    insights: Optional[List[str]] = None
    decision: Optional[ReviewDecision] = None


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise ValueError(
        f"Review upsert is not supported on {dialect}; use postgresql or sqlite"
    )


class ReviewCRUD(CRUDBase[Review, ReviewCreate, ReviewUpdate]):
    """
    Reviews are keyed by (paper, reviewer). Every write is a single
    INSERT ... ON CONFLICT DO UPDATE so that two concurrent writers never
    produce a second row.
    """

    def _upsert(
        self,
        db: Session,
        *,
        paper_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        values: Dict,
        update_columns: Sequence[str],
        commit: bool = True,
    ) -> Review:
        now = utcnow()
        insert = _insert_for(db)
        stmt = insert(Review).values(
            id=uuid.uuid4(),
            paper_id=paper_id,
            reviewer_id=reviewer_id,
            created_at=now,
            updated_at=now,
            **values,
        )
        set_ = {column: stmt.excluded[column] for column in update_columns}
        set_["updated_at"] = stmt.excluded.updated_at
        stmt = stmt.on_conflict_do_update(
            index_elements=["paper_id", "reviewer_id"], set_=set_
        )
        try:
            db.execute(stmt)
            if commit:
                db.commit()
        except Exception as e:
            if commit:
                db.rollback()
            logger.error(
                f"Error upserting review for paper {paper_id} by {reviewer_id}: {e}",
                exc_info=True,
            )
            raise

        return self.get_for(db, paper_id=paper_id, reviewer_id=reviewer_id)

    def upsert_content(
        self,
        db: Session,
        *,
        paper_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        comments: str,
        insights: List[str],
    ) -> Review:
        """Replace comments and insights; a new row starts with a pending decision."""
        return self._upsert(
            db,
            paper_id=paper_id,
            reviewer_id=reviewer_id,
            values={
                "comments": comments,
                "insights": insights,
                "decision": ReviewDecision.PENDING.value,
            },
            update_columns=["comments", "insights"],
        )

    def upsert_decision(
        self,
        db: Session,
        *,
        paper_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        decision: ReviewDecision,
        commit: bool = True,
    ) -> Review:
        """Set the decision only; a new row gets empty comments and insights."""
        return self._upsert(
            db,
            paper_id=paper_id,
            reviewer_id=reviewer_id,
            values={"comments": "", "insights": [], "decision": decision.value},
            update_columns=["decision"],
            commit=commit,
        )

    def get_for(
        self, db: Session, *, paper_id: uuid.UUID, reviewer_id: uuid.UUID
    ) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(Review.paper_id == paper_id, Review.reviewer_id == reviewer_id)
            .first()
        )

    def list_for_paper(self, db: Session, *, paper_id: uuid.UUID) -> List[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.reviewer))
            .filter(Review.paper_id == paper_id)
            .order_by(Review.created_at.desc())
            .all()
        )

    def reviewed_pairs(
        self, db: Session, *, paper_ids: Sequence[uuid.UUID]
    ) -> Set[Tuple[uuid.UUID, uuid.UUID]]:
        """(reviewer_id, paper_id) for every review row over the given papers."""
        if not paper_ids:
            return set()
        rows = (
            db.query(Review.reviewer_id, Review.paper_id)
            .filter(Review.paper_id.in_(list(paper_ids)))
            .all()
        )
        return {(reviewer_id, paper_id) for reviewer_id, paper_id in rows}

    def count_for_papers(self, db: Session, *, paper_ids: Sequence[uuid.UUID]) -> int:
        if not paper_ids:
            return 0
        return db.query(Review).filter(Review.paper_id.in_(list(paper_ids))).count()

    def latest_selected_by_paper(
        self, db: Session, *, paper_ids: Sequence[uuid.UUID]
    ) -> Dict[uuid.UUID, Review]:
        """Most recently updated `selected` review per paper, reviewer loaded."""
        if not paper_ids:
            return {}
        reviews = (
            db.query(Review)
            .options(joinedload(Review.reviewer))
            .filter(
                Review.paper_id.in_(list(paper_ids)),
                Review.decision == ReviewDecision.SELECTED.value,
            )
            .order_by(Review.updated_at.desc())
            .all()
        )
        latest: Dict[uuid.UUID, Review] = {}
        for review in reviews:
            latest.setdefault(review.paper_id, review)
        return latest


review_crud = ReviewCRUD(Review)
