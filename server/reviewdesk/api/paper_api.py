import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from reviewdesk.auth.dependencies import require_roles
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.database import get_db
from reviewdesk.database.models import Paper as PaperModel
from reviewdesk.schemas.paper import Paper, PaperDetail
from reviewdesk.schemas.responses import to_json_list
from reviewdesk.schemas.user import CurrentUser
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Create API router with prefix
paper_router = APIRouter()


@paper_router.get("/my")
async def get_my_papers(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("author")),
):
    """
    Every paper the caller has submitted, across all events, newest first
    """
    papers: List[PaperModel] = paper_crud.list_for_author(db, author_id=current_user.id)
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "papers": to_json_list(PaperDetail.model_validate(p) for p in papers),
        },
    )


# `path` keeps tracks such as "AI/ML" in one segment
@paper_router.get("/track/{track:path}")
async def get_papers_by_track(
    track: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("reviewer")),
):
    papers = paper_crud.list_by_track(db, track=track)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "papers": to_json_list(Paper.model_validate(p) for p in papers)},
    )
