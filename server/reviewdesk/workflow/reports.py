import logging
from typing import Any, List

from reviewdesk.database.crud.base_crud import parse_id
from reviewdesk.database.crud.paper_crud import paper_crud
from reviewdesk.database.crud.review_crud import review_crud
from reviewdesk.helpers.spreadsheet import ACCEPTED_COLUMNS, encode_rows
from reviewdesk.schemas.review import AcceptedRow
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Reviewer name shown when a paper was selected without any reviewer selecting it
COORDINATOR_OVERRIDE = "Coordinator override"


def accepted_report_rows(db: Session, *, event_id: Any) -> List[AcceptedRow]:
    """
    One row per selected paper in the event.

    The reviewer credited is the one whose `selected` review was updated most
    recently. A paper with no such review was selected by a coordinator.
    """
    event_uuid = parse_id(event_id, "eventId")
    papers = paper_crud.list_selected(db, event_id=event_uuid)
    latest = review_crud.latest_selected_by_paper(
        db, paper_ids=[paper.id for paper in papers]
    )

    rows: List[AcceptedRow] = []
    for paper in papers:
        review = latest.get(paper.id)
        reviewer_name = (
            review.reviewer.name if review and review.reviewer else COORDINATOR_OVERRIDE
        )
        author = paper.publisher
        rows.append(
            AcceptedRow(
                reviewer_name=reviewer_name,
                track=paper.track,
                author_email=(author.email if author else None) or "",
                contact_number=(author.contact_number if author else None) or "",
            )
        )
    return rows


def accepted_report_workbook(db: Session, *, event_id: Any) -> bytes:
    rows = accepted_report_rows(db, event_id=event_id)
    return encode_rows(
        [row.model_dump(by_alias=True) for row in rows],
        columns=ACCEPTED_COLUMNS,
        sheet_title="Accepted",
    )
