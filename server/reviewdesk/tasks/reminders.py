import logging
from datetime import datetime
from typing import Dict, Optional

from reviewdesk.database.crud.assignment_crud import assignment_crud
from reviewdesk.database.crud.event_crud import event_crud
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.database import session_scope
from reviewdesk.database.models import utcnow
from reviewdesk.helpers import email
from reviewdesk.schemas.event import as_utc
from reviewdesk.tasks.celery_app import celery_app
from reviewdesk.workflow.reports import accepted_report_workbook
from reviewdesk.workflow.stats import pending_by_reviewer
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _format_deadline(deadline: Optional[datetime]) -> str:
    if deadline is None:
        return "unknown"
    return as_utc(deadline).strftime("%Y-%m-%d")


def send_reviewer_reminders(
    db: Session, now: Optional[datetime] = None
) -> Dict[str, int]:
    """
    Email every reviewer who still has unreviewed papers in an event whose
    review deadline has not passed. One mail per reviewer per event.
    """
    now = as_utc(now) if now else utcnow()
    sent = 0
    failed = 0

    for event in event_crud.list_with_open_deadline(db, now=now):
        try:
            assignments = assignment_crud.list_for_event(db, event_id=event.id)
            grouped = pending_by_reviewer(db, assignments=assignments)
        except Exception as e:
            # A failed statement aborts the transaction for every later event
            db.rollback()
            logger.error(
                f"Could not compute pending reviews for event {event.id}: {e}",
                exc_info=True,
            )
            failed += 1
            continue

        deadline = _format_deadline(event.review_deadline)
        for reviewer_id, entry in grouped.items():
            if entry["pending"] <= 0:
                continue
            reviewer = entry["reviewer"]
            ok = email.send_reviewer_reminder(
                email=reviewer.email,
                reviewer_name=reviewer.name,
                pending_count=entry["pending"],
                event_title=event.title,
                deadline=deadline,
            )
            if ok:
                sent += 1
            else:
                failed += 1
                logger.warning(
                    f"Reminder to reviewer {reviewer_id} for event {event.id} failed"
                )

    logger.info(f"Reviewer reminders done: {sent} sent, {failed} failed")
    return {"sent": sent, "failed": failed}


def send_accepted_reports(db: Session) -> Dict[str, int]:
    """Mail the accepted-paper spreadsheet of every event with a selected paper."""
    sent = 0
    failed = 0

    for event in event_crud.list_by_date(db):
        try:
            if paper_crud.count_selected(db, event_id=event.id) == 0:
                continue
            workbook = accepted_report_workbook(db, event_id=event.id)
        except Exception as e:
            db.rollback()
            logger.error(
                f"Could not build accepted report for event {event.id}: {e}",
                exc_info=True,
            )
            failed += 1
            continue

        if email.send_accepted_report(event.title, workbook):
            sent += 1
        else:
            failed += 1

    logger.info(f"Accepted reports done: {sent} sent, {failed} failed")
    return {"sent": sent, "failed": failed}


@celery_app.task(bind=True, name="send_daily_review_digest")
def send_daily_review_digest(self) -> Dict[str, Dict[str, int]]:
    logger.info(f"Running daily review digest (task {self.request.id})")
    with session_scope() as db:
        reminders = send_reviewer_reminders(db)
        reports = send_accepted_reports(db)
    logger.info("Daily review digest completed")
    return {"reminders": reminders, "reports": reports}
