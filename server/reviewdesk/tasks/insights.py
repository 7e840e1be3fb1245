import logging
import uuid
from typing import Any, Dict, Optional

from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.database import session_scope
from reviewdesk.database.models import PaperStatus
from reviewdesk.helpers.storage import storage_service
from reviewdesk.llm.insights import InsightExtractor, insight_extractor
from reviewdesk.tasks.celery_app import celery_app
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def process_paper_insights(
    db: Session,
    paper_id: uuid.UUID,
    extractor: Optional[InsightExtractor] = None,
) -> Dict[str, Any]:
    """
    Extract insights for one paper and store them on it.

    The paper is `processing` while the model runs and `reviewed` once
    insights are saved. Any failure puts the paper back to the status it had
    before and is logged, never raised.
    """
    extractor = extractor or insight_extractor

    paper = paper_crud.get(db, paper_id)
    if not paper:
        logger.error(f"Paper {paper_id} not found for insight extraction")
        return {"status": "missing", "paper_id": str(paper_id)}

    previous_status = PaperStatus(paper.status)
    file_url = str(paper.file_url)
    paper_crud.set_status(db, paper_id=paper_id, status=PaperStatus.PROCESSING)

    try:
        content = storage_service.read(file_url)
        insights = extractor.extract(content, file_url)
        paper_crud.set_insights(db, paper_id=paper_id, insights=insights)
    except Exception as e:
        logger.error(f"Insight generation failed for paper {paper_id}: {e}", exc_info=True)
        db.rollback()
        paper_crud.set_status(db, paper_id=paper_id, status=previous_status)
        return {"status": "failed", "paper_id": str(paper_id), "error": str(e)}

    logger.info(f"Generated {len(insights)} insights for paper {paper_id}")
    return {"status": "completed", "paper_id": str(paper_id), "count": len(insights)}


@celery_app.task(bind=True, name="extract_paper_insights")
def extract_paper_insights(self, paper_id: str) -> Dict[str, Any]:
    logger.info(f"Starting insight extraction for paper {paper_id} (task {self.request.id})")
    with session_scope() as db:
        return process_paper_insights(db, parse_id(paper_id, "paperId"))


def enqueue_insight_job(paper_id: uuid.UUID) -> None:
    """
    Queue insight extraction without blocking the caller.

    A broker outage is logged and otherwise ignored; the paper simply stays
    `submitted`.
    """
    try:
        task = extract_paper_insights.delay(str(paper_id))
        logger.info(f"Queued insight extraction for paper {paper_id}: {task.id}")
    except Exception as e:
        logger.warning(
            f"Could not queue insight extraction for paper {paper_id}: {e}",
            exc_info=True,
        )
