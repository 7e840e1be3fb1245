import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from reviewdesk.auth.dependencies import require_roles
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.crud.user_crud import user_crud
from reviewdesk.database.database import get_db
from reviewdesk.schemas.paper import ADMIN_DECISIONS, AdminStatusUpdate, Paper, PaperDetail
from reviewdesk.schemas.responses import to_json, to_json_list
from reviewdesk.schemas.user import CurrentUser, User
from reviewdesk.workflow.errors import NotFoundError, ValidationError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Every route here is for coordinators; the legacy `admin` label is admitted too
admin_router = APIRouter(dependencies=[Depends(require_roles("coordinator"))])


@admin_router.get("/users")
async def list_users(db: Session = Depends(get_db)):
    users = user_crud.list_all(db)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "users": to_json_list(User.model_validate(u) for u in users)},
    )


@admin_router.get("/papers")
async def list_papers(db: Session = Depends(get_db)):
    papers = paper_crud.list_all_with_publisher(db)
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "papers": to_json_list(PaperDetail.model_validate(p) for p in papers),
        },
    )


@admin_router.patch("/papers/{paper_id}/status")
async def update_paper_admin_status(
    paper_id: str,
    request: AdminStatusUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("coordinator")),
):
    """Approve or reject a paper. Only touches `adminStatus`."""
    if request.status not in ADMIN_DECISIONS:
        raise ValidationError("Invalid status")

    paper = paper_crud.get(db, paper_id)
    if not paper:
        raise NotFoundError("Paper not found")

    paper = paper_crud.update(db, db_obj=paper, obj_in={"admin_status": request.status})
    logger.info(f"Paper {paper_id} admin status set to {request.status} by {current_user.id}")
    return JSONResponse(
        status_code=200, content={"ok": True, "paper": to_json(Paper.model_validate(paper))}
    )
