from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from reviewdesk.auth.dependencies import get_required_user
from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.review_crud import review_crud
from reviewdesk.database.database import get_db
from reviewdesk.schemas.responses import to_json_list
from reviewdesk.schemas.review import ReviewWithReviewer
from reviewdesk.schemas.user import CurrentUser
from sqlalchemy.orm import Session

review_router = APIRouter()


@review_router.get("/{paper_id}")
async def get_paper_reviews(
    paper_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_required_user),
):
    """All reviews of a paper with their reviewers. Any signed-in user."""
    reviews = review_crud.list_for_paper(db, paper_id=parse_id(paper_id, "paperId"))
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "reviews": to_json_list(ReviewWithReviewer.model_validate(r) for r in reviews),
        },
    )
