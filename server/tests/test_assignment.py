import uuid

import pytest
from reviewdesk.database.models import Assignment
from reviewdesk.workflow.assignment import assign_reviewer, list_assignments
from reviewdesk.workflow.errors import NotFoundError, ValidationError


def _count_assignments(db) -> int:
    return db.query(Assignment).count()


def test_assign_creates_one_row_per_paper(db, event, make_paper, reviewer, coordinator):
    first = make_paper(event, title="Paper one")
    second = make_paper(event, title="Paper two")

    result = assign_reviewer(
        db,
        event_id=str(event.id),
        reviewer_id=str(reviewer.id),
        paper_ids=[str(first.id), str(second.id)],
        assigned_by=coordinator.id,
    )

    assert (result.created, result.skipped) == (2, 0)
    assert _count_assignments(db) == 2


def test_repeated_assignment_is_skipped(db, event, make_paper, reviewer, coordinator):
    paper = make_paper(event)
    kwargs = dict(
        event_id=str(event.id),
        reviewer_id=str(reviewer.id),
        paper_ids=[str(paper.id)],
        assigned_by=coordinator.id,
    )

    assign_reviewer(db, **kwargs)
    result = assign_reviewer(db, **kwargs)

    assert (result.created, result.skipped) == (0, 1)
    assert _count_assignments(db) == 1


def test_duplicate_paper_in_one_batch(db, event, make_paper, reviewer, coordinator):
    paper = make_paper(event)
    other = make_paper(event, title="Another paper")

    result = assign_reviewer(
        db,
        event_id=event.id,
        reviewer_id=reviewer.id,
        paper_ids=[paper.id, other.id, paper.id],
        assigned_by=coordinator.id,
    )

    assert (result.created, result.skipped) == (2, 1)
    assert _count_assignments(db) == 2


def test_same_paper_can_go_to_several_reviewers(
    db, event, make_paper, reviewer, other_reviewer, coordinator
):
    paper = make_paper(event)
    for person in (reviewer, other_reviewer):
        result = assign_reviewer(
            db,
            event_id=event.id,
            reviewer_id=person.id,
            paper_ids=[paper.id],
            assigned_by=coordinator.id,
        )
        assert result.created == 1
    assert _count_assignments(db) == 2


def test_paper_from_another_event_rejects_whole_batch(
    db, make_event, make_paper, reviewer, coordinator
):
    event = make_event("Event A")
    elsewhere = make_event("Event B")
    ours = make_paper(event)
    theirs = make_paper(elsewhere)

    with pytest.raises(ValidationError) as excinfo:
        assign_reviewer(
            db,
            event_id=event.id,
            reviewer_id=reviewer.id,
            paper_ids=[ours.id, theirs.id],
            assigned_by=coordinator.id,
        )

    assert excinfo.value.message == "One or more papers do not belong to this event"
    assert _count_assignments(db) == 0


@pytest.mark.parametrize("reviewer_id, paper_ids", [(None, ["x"]), ("x", []), ("x", None)])
def test_missing_reviewer_or_papers(db, event, coordinator, reviewer_id, paper_ids):
    with pytest.raises(ValidationError) as excinfo:
        assign_reviewer(
            db,
            event_id=event.id,
            reviewer_id=reviewer_id,
            paper_ids=paper_ids,
            assigned_by=coordinator.id,
        )
    assert excinfo.value.message == "Missing reviewerId/paperIds"


def test_malformed_paper_id(db, event, reviewer, coordinator):
    with pytest.raises(ValidationError) as excinfo:
        assign_reviewer(
            db,
            event_id=event.id,
            reviewer_id=reviewer.id,
            paper_ids=["not-a-uuid"],
            assigned_by=coordinator.id,
        )
    assert excinfo.value.message == "Invalid paperId"


def test_unknown_event_and_reviewer(db, event, make_paper, reviewer, coordinator):
    paper = make_paper(event)
    with pytest.raises(NotFoundError):
        assign_reviewer(
            db,
            event_id=uuid.uuid4(),
            reviewer_id=reviewer.id,
            paper_ids=[paper.id],
            assigned_by=coordinator.id,
        )
    with pytest.raises(NotFoundError):
        assign_reviewer(
            db,
            event_id=event.id,
            reviewer_id=uuid.uuid4(),
            paper_ids=[paper.id],
            assigned_by=coordinator.id,
        )


def test_reviewer_role_is_not_required(db, event, make_paper, make_user, coordinator):
    outsider = make_user("Only Author", roles=["author"])
    paper = make_paper(event)

    result = assign_reviewer(
        db,
        event_id=event.id,
        reviewer_id=outsider.id,
        paper_ids=[paper.id],
        assigned_by=coordinator.id,
    )

    assert result.created == 1


def test_list_assignments_filters_by_reviewer(
    db, event, make_paper, reviewer, other_reviewer, assign
):
    first = make_paper(event, title="First")
    second = make_paper(event, title="Second")
    assign(first, reviewer)
    assign(second, reviewer)
    assign(first, other_reviewer)

    assert len(list_assignments(db, event_id=event.id)) == 3
    mine = list_assignments(db, event_id=str(event.id), reviewer_id=str(reviewer.id))
    assert {a.paper_id for a in mine} == {first.id, second.id}
    assert all(a.reviewer.id == reviewer.id for a in mine)
