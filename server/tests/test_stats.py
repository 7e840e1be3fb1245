from datetime import datetime, timedelta, timezone

import freezegun
import pytest
from reviewdesk.database.crud.assignment_crud import assignment_crud
from reviewdesk.database.crud.review_crud import review_crud
from reviewdesk.database.models import ReviewDecision
from reviewdesk.workflow.errors import NotFoundError
from reviewdesk.workflow.review import submit_review
from reviewdesk.workflow.stats import (
    deadline_days_left,
    event_stats,
    pending_by_reviewer,
    pending_reviewers_report,
    reviewer_progress,
)


def _review(db, event, paper, reviewer, comments="Reviewed"):
    return submit_review(
        db, event_id=event.id, paper_id=paper.id, reviewer_id=reviewer.id, comments=comments
    )


def test_reviewer_progress(db, event, make_paper, reviewer, assign):
    first = make_paper(event, title="First")
    second = make_paper(event, title="Second")
    assign(first, reviewer)
    assign(second, reviewer)
    _review(db, event, first, reviewer)

    progress = reviewer_progress(db, event_id=event.id, reviewer_id=reviewer.id)

    summary = progress["summary"]
    assert (summary.total_assigned, summary.reviewed_count, summary.pending_count) == (2, 1, 1)
    reviewed = {item.paper_id: item.reviewed for item in progress["items"]}
    assert reviewed == {first.id: True, second.id: False}
    item = next(i for i in progress["items"] if i.paper_id == first.id)
    assert item.publisher.name == "Arun Author"
    assert item.event.title == event.title


def test_decision_only_review_counts_as_reviewed(db, event, make_paper, reviewer, assign):
    paper = make_paper(event)
    assign(paper, reviewer)
    review_crud.upsert_decision(
        db, paper_id=paper.id, reviewer_id=reviewer.id, decision=ReviewDecision.REJECTED
    )

    progress = reviewer_progress(db, event_id=event.id, reviewer_id=reviewer.id)

    assert progress["summary"].pending_count == 0


def test_reviewer_progress_without_assignments(db, event, reviewer):
    progress = reviewer_progress(db, event_id=event.id, reviewer_id=reviewer.id)
    assert progress["items"] == []
    assert progress["summary"].total_assigned == 0


def test_pending_counts_ignore_reviews_of_unassigned_papers(
    db, event, make_paper, reviewer, other_reviewer, assign
):
    mine = make_paper(event, title="Mine")
    theirs = make_paper(event, title="Theirs")
    assign(mine, reviewer)
    assign(theirs, other_reviewer)
    # A stray review on a paper the reviewer was never given
    review_crud.upsert_content(
        db, paper_id=theirs.id, reviewer_id=reviewer.id, comments="stray", insights=[]
    )

    grouped = pending_by_reviewer(
        db, assignments=assignment_crud.list_for_event(db, event_id=event.id)
    )

    assert grouped[reviewer.id]["pending"] == 1
    assert grouped[reviewer.id]["reviewed"] == 0
    assert all(entry["pending"] >= 0 for entry in grouped.values())


def test_event_stats(db, event, make_paper, reviewer, other_reviewer, assign):
    selected = make_paper(event, track="AI", result_status="selected")
    rejected = make_paper(event, track="AI", result_status="rejected")
    pending = make_paper(event, track="Systems")
    assign(selected, reviewer)
    assign(rejected, reviewer)
    assign(pending, other_reviewer)
    _review(db, event, selected, reviewer)

    stats = event_stats(db, event_id=str(event.id))

    assert stats["papers"] == {"total": 3, "selected": 1, "rejected": 1, "pending": 1}
    assert stats["totalAssignments"] == 3
    assert stats["distinctReviewers"] == 2
    assert stats["totalReviews"] == 1
    assert stats["tracks"] == {"AI": 2, "Systems": 1}


def test_event_stats_counts_result_out_in_total_only(db, event, make_paper):
    make_paper(event, result_status="resultOut")
    stats = event_stats(db, event_id=event.id)
    assert stats["papers"] == {"total": 1, "selected": 0, "rejected": 0, "pending": 0}


def test_event_stats_unknown_event(db):
    with pytest.raises(NotFoundError):
        event_stats(db, event_id="6c1f7a52-2a4e-4f1c-9e0e-1e4a3b7d9a10")


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 11, 18, 12, 0, tzinfo=timezone.utc), 2),
        (datetime(2026, 11, 19, 0, 0, tzinfo=timezone.utc), 1),
        (datetime(2026, 11, 20, 0, 0, tzinfo=timezone.utc), 0),
        (datetime(2026, 11, 21, 0, 0, tzinfo=timezone.utc), -1),
    ],
)
def test_deadline_days_left(now, expected):
    deadline = datetime(2026, 11, 20, 0, 0, tzinfo=timezone.utc)
    assert deadline_days_left(deadline, now) == expected


def test_deadline_days_left_without_deadline():
    assert deadline_days_left(None) is None


def test_pending_reviewers_report(
    db, event, make_paper, reviewer, other_reviewer, assign
):
    first = make_paper(event, title="First")
    second = make_paper(event, title="Second")
    assign(first, reviewer)
    assign(second, reviewer)
    assign(first, other_reviewer)
    _review(db, event, first, reviewer)
    _review(db, event, first, other_reviewer)

    with freezegun.freeze_time("2026-11-17 06:00:00"):
        report = pending_reviewers_report(db, event_id=event.id)

    assert report["event"]["title"] == event.title
    assert report["event"]["deadlineDaysLeft"] == 3
    assert report["event"]["reviewDeadline"].startswith("2026-11-20T00:00:00")
    assert report["summary"] == {
        "totalReviewers": 2,
        "totalAssigned": 3,
        "totalReviewed": 2,
        "totalPending": 1,
    }
    by_name = {item["reviewerName"]: item for item in report["items"]}
    assert by_name["Rita Reviewer"]["pendingCount"] == 1
    assert by_name["Omar Reviewer"]["pendingCount"] == 0


def test_pending_reviewers_report_without_deadline(db, make_event):
    event = make_event(review_deadline=None)
    report = pending_reviewers_report(
        db, event_id=event.id, now=datetime.now(timezone.utc) + timedelta(days=1)
    )
    assert report["event"]["reviewDeadline"] is None
    assert report["event"]["deadlineDaysLeft"] is None
    assert report["items"] == []
