import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from reviewdesk.auth.dependencies import get_required_user, require_roles
from reviewdesk.database.crud.assignment_crud import assignment_crud
from reviewdesk.database.database import get_db
from reviewdesk.helpers.spreadsheet import XLSX_MEDIA_TYPE
from reviewdesk.schemas.user import CurrentUser
from reviewdesk.tasks.reminders import send_accepted_reports, send_reviewer_reminders
from reviewdesk.workflow.reports import accepted_report_workbook
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

debug_router = APIRouter()

coordinator_only = require_roles("coordinator")


@debug_router.get("/assignments")
async def all_assignments(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    """Every reviewer-paper assignment across events."""
    assignments = assignment_crud.list_all(db)
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "count": len(assignments),
            "assignments": [
                {
                    "id": str(a.id),
                    "event": {"id": str(a.event_id), "title": a.event.title if a.event else None},
                    "paper": {"id": str(a.paper_id), "title": a.paper.title if a.paper else None},
                    "reviewer": {
                        "id": str(a.reviewer_id),
                        "name": a.reviewer.name if a.reviewer else None,
                        "email": a.reviewer.email if a.reviewer else None,
                        "roles": a.reviewer.roles if a.reviewer else [],
                    },
                    "assignedAt": a.assigned_at.isoformat() if a.assigned_at else None,
                }
                for a in assignments
            ],
        },
    )


@debug_router.post("/mail/reminders")
async def trigger_reviewer_reminders(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    """Run the reviewer reminder half of the daily digest now."""
    logger.info(f"Reviewer reminders triggered manually by {current_user.id}")
    counts = send_reviewer_reminders(db)
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "message": "Reviewer reminder mails triggered successfully",
            **counts,
        },
    )


@debug_router.post("/mail/report")
async def trigger_accepted_report(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    logger.info(f"Accepted reports triggered manually by {current_user.id}")
    counts = send_accepted_reports(db)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "message": "Accepted report mail sent successfully", **counts},
    )


@debug_router.get("/accepted/{event_id}")
async def accepted_workbook(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    workbook = accepted_report_workbook(db, event_id=event_id)
    return Response(
        content=workbook,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=Accepted-{event_id}.xlsx"},
    )


@debug_router.get("/whoami")
async def whoami(current_user: CurrentUser = Depends(get_required_user)):
    return JSONResponse(
        status_code=200,
        content={"ok": True, "user": current_user.model_dump(mode="json")},
    )
