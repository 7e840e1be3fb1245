import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from reviewdesk.auth.dependencies import require_roles
from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.event_crud import event_crud
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.database import get_db
from reviewdesk.helpers.spreadsheet import XLSX_MEDIA_TYPE
from reviewdesk.helpers.storage import storage_service
from reviewdesk.schemas.event import Event, EventCreate
from reviewdesk.schemas.paper import DecisionRequest, PaperDetail
from reviewdesk.schemas.responses import to_json, to_json_list
from reviewdesk.schemas.review import (
    Assignment,
    AssignRequest,
    Review,
    ReviewSubmission,
)
from reviewdesk.schemas.user import CurrentUser
from reviewdesk.tasks.insights import enqueue_insight_job
from reviewdesk.workflow import assignment as assignment_workflow
from reviewdesk.workflow import review as review_workflow
from reviewdesk.workflow import stats as stats_workflow
from reviewdesk.workflow.errors import NotFoundError, ValidationError
from reviewdesk.workflow.reports import accepted_report_rows, accepted_report_workbook
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

event_router = APIRouter()

coordinator_only = require_roles("coordinator")


# Coordinator: create / list / delete events


@event_router.post("/create")
async def create_event(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    review_deadline: Optional[str] = Form(None, alias="reviewDeadline"),
    banner: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    """Create an event from multipart form fields, with an optional banner image."""
    if not title or not description or not date:
        raise ValidationError("Missing title/description/date")

    try:
        event_in = EventCreate(
            title=title,
            description=description,
            date=date,
            review_deadline=review_deadline or None,
        )
    except PydanticValidationError as e:
        raise ValidationError(e.errors()[0].get("msg", "Invalid event"))

    if banner is not None and banner.filename:
        content = await banner.read()
        event_in.banner_url = storage_service.save_banner(content, banner.filename)

    event = event_crud.create_for(db, obj_in=event_in, created_by=current_user.id)
    logger.info(f"Event {event.id} created by {current_user.id}")
    return JSONResponse(
        status_code=201, content={"ok": True, "event": to_json(Event.model_validate(event))}
    )


@event_router.get("/")
async def list_events(db: Session = Depends(get_db)):
    """List all events, earliest first. Public."""
    events = event_crud.list_by_date(db)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "events": to_json_list(Event.model_validate(e) for e in events)},
    )


@event_router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    """Delete an event together with its papers, assignments and reviews."""
    removed = event_crud.remove(db, id=parse_id(event_id, "eventId"))
    if not removed:
        raise NotFoundError("Event not found")
    logger.info(f"Event {event_id} deleted by {current_user.id}")
    return JSONResponse(status_code=200, content={"ok": True})


# Author: submit a paper to an event and list own papers for it


@event_router.post("/{event_id}/submit")
async def submit_paper(
    event_id: str,
    title: Optional[str] = Form(None),
    track: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("author")),
):
    if file is None or not file.filename:
        raise ValidationError("No file")
    if not title or not track:
        raise ValidationError("Missing title/track")

    event = event_crud.get(db, parse_id(event_id, "eventId"))
    if not event:
        raise NotFoundError("Event not found")

    content = await file.read()
    file_url = storage_service.save_paper(content, file.filename)

    paper = paper_crud.create(
        db,
        obj_in={
            "title": title,
            "track": track,
            "file_url": file_url,
            "publisher_id": current_user.id,
            "event_id": event.id,
        },
    )

    # Insights are generated in the background
    enqueue_insight_job(paper.id)

    return JSONResponse(
        status_code=201,
        content={"ok": True, "paper": to_json(PaperDetail.model_validate(paper))},
    )


@event_router.get("/{event_id}/my-papers")
async def my_event_papers(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("author")),
):
    papers = paper_crud.list_for_author(
        db, author_id=current_user.id, event_id=parse_id(event_id, "eventId")
    )
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "papers": to_json_list(PaperDetail.model_validate(p) for p in papers),
        },
    )


# Coordinator: assign event papers to reviewers


@event_router.post("/{event_id}/assign")
async def assign_papers(
    event_id: str,
    request: AssignRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    result = assignment_workflow.assign_reviewer(
        db,
        event_id=event_id,
        reviewer_id=request.reviewer_id,
        paper_ids=request.paper_ids,
        assigned_by=current_user.id,
    )
    return JSONResponse(status_code=201, content={"ok": True, **to_json(result)})


@event_router.get("/{event_id}/assignments")
async def list_event_assignments(
    event_id: str,
    reviewer_id: Optional[str] = Query(None, alias="reviewerId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    assignments = assignment_workflow.list_assignments(
        db, event_id=event_id, reviewer_id=reviewer_id
    )
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "assignments": to_json_list(Assignment.model_validate(a) for a in assignments),
        },
    )


# Reviewer: assigned papers, reviews and decisions


@event_router.get("/{event_id}/assigned")
async def my_assigned_papers(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("reviewer")),
):
    progress = stats_workflow.reviewer_progress(
        db, event_id=event_id, reviewer_id=current_user.id
    )
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "summary": to_json(progress["summary"]),
            "items": to_json_list(progress["items"]),
        },
    )


@event_router.post("/{event_id}/reviews/{paper_id}")
async def submit_review(
    event_id: str,
    paper_id: str,
    request: ReviewSubmission,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("reviewer")),
):
    review = review_workflow.submit_review(
        db,
        event_id=event_id,
        paper_id=paper_id,
        reviewer_id=current_user.id,
        comments=request.comments,
        insights=request.insights,
    )
    return JSONResponse(
        status_code=201, content={"ok": True, "review": to_json(Review.model_validate(review))}
    )


@event_router.patch("/{event_id}/papers/{paper_id}/decision")
async def decide_paper(
    event_id: str,
    paper_id: str,
    request: DecisionRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("reviewer", "coordinator")),
):
    paper = review_workflow.decide(
        db,
        event_id=event_id,
        paper_id=paper_id,
        actor_id=current_user.id,
        actor_roles=current_user.roles,
        result_status=request.result_status,
    )
    return JSONResponse(
        status_code=200,
        content={"ok": True, "paper": to_json(PaperDetail.model_validate(paper))},
    )


# Coordinator: reports


@event_router.get("/{event_id}/accepted")
async def accepted_papers(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    rows = accepted_report_rows(db, event_id=event_id)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "count": len(rows), "rows": to_json_list(rows)},
    )


@event_router.get("/{event_id}/accepted.xlsx")
async def accepted_papers_export(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    workbook = accepted_report_workbook(db, event_id=event_id)
    return Response(
        content=workbook,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="accepted-{event_id}.xlsx"'
        },
    )


@event_router.get("/{event_id}/reviewers/pending")
async def pending_reviewers(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    report = stats_workflow.pending_reviewers_report(db, event_id=event_id)
    return JSONResponse(status_code=200, content={"ok": True, **report})


@event_router.get("/{event_id}/stats")
async def event_statistics(
    event_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(coordinator_only),
):
    stats = stats_workflow.event_stats(db, event_id=event_id)
    return JSONResponse(status_code=200, content={"ok": True, **stats})
