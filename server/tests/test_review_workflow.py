from unittest import mock

import pytest
from reviewdesk.database.crud.review_crud import _insert_for, review_crud
from reviewdesk.database.models import Review
from reviewdesk.workflow.errors import AuthorizationError, NotFoundError, ValidationError
from reviewdesk.workflow.review import decide, submit_review
from sqlalchemy.exc import OperationalError


def _reviews(db):
    db.expire_all()
    return db.query(Review).all()


class TestSubmitReview:
    def test_requires_assignment(self, db, event, make_paper, reviewer):
        paper = make_paper(event)

        with pytest.raises(AuthorizationError) as excinfo:
            submit_review(
                db,
                event_id=event.id,
                paper_id=paper.id,
                reviewer_id=reviewer.id,
                comments="Solid work",
            )

        assert excinfo.value.message == "Not assigned to this paper"
        assert _reviews(db) == []

    @pytest.mark.parametrize("comments", [None, "", "   ", "\n\t"])
    def test_comments_are_required(
        self, db, event, make_paper, reviewer, assign, comments
    ):
        paper = make_paper(event)
        assign(paper, reviewer)

        with pytest.raises(ValidationError) as excinfo:
            submit_review(
                db,
                event_id=event.id,
                paper_id=paper.id,
                reviewer_id=reviewer.id,
                comments=comments,
            )
        assert excinfo.value.message == "comments required"
        assert _reviews(db) == []

    def test_paper_must_belong_to_event(
        self, db, make_event, make_paper, reviewer, assign
    ):
        event = make_event("Event A")
        elsewhere = make_event("Event B")
        paper = make_paper(elsewhere)
        assign(paper, reviewer)

        with pytest.raises(NotFoundError) as excinfo:
            submit_review(
                db,
                event_id=event.id,
                paper_id=paper.id,
                reviewer_id=reviewer.id,
                comments="Wrong event",
            )
        assert excinfo.value.message == "Paper not found in this event"

    def test_resubmission_replaces_the_same_row(
        self, db, event, make_paper, reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)

        first = submit_review(
            db,
            event_id=event.id,
            paper_id=paper.id,
            reviewer_id=reviewer.id,
            comments="Needs more experiments",
            insights=["baseline missing"],
        )
        second = submit_review(
            db,
            event_id=event.id,
            paper_id=paper.id,
            reviewer_id=reviewer.id,
            comments="Experiments added, looks good",
        )

        reviews = _reviews(db)
        assert len(reviews) == 1
        assert second.id == first.id
        assert reviews[0].comments == "Experiments added, looks good"
        assert reviews[0].insights == []
        assert reviews[0].decision == "pending"

    def test_resubmission_keeps_the_decision(
        self, db, event, make_paper, reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)

        decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=reviewer.id,
            actor_roles=["reviewer"],
            result_status="selected",
        )
        review = submit_review(
            db,
            event_id=event.id,
            paper_id=paper.id,
            reviewer_id=reviewer.id,
            comments="Clear accept",
        )

        assert review.decision == "selected"
        assert review.comments == "Clear accept"
        assert len(_reviews(db)) == 1


class TestDecide:
    def test_invalid_result_status(self, db, event, make_paper, coordinator):
        paper = make_paper(event)
        for value in (None, "resultOut", "submitted", "maybe"):
            with pytest.raises(ValidationError) as excinfo:
                decide(
                    db,
                    event_id=event.id,
                    paper_id=paper.id,
                    actor_id=coordinator.id,
                    actor_roles=["coordinator"],
                    result_status=value,
                )
            assert excinfo.value.message == "Invalid resultStatus"

    def test_unassigned_reviewer_changes_nothing(self, db, event, make_paper, reviewer):
        paper = make_paper(event)

        with pytest.raises(AuthorizationError):
            decide(
                db,
                event_id=event.id,
                paper_id=paper.id,
                actor_id=reviewer.id,
                actor_roles=["reviewer"],
                result_status="rejected",
            )

        db.refresh(paper)
        assert paper.result_status == "submitted"
        assert _reviews(db) == []

    def test_assigned_reviewer_decision_is_mirrored_on_review(
        self, db, event, make_paper, reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)

        updated = decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=reviewer.id,
            actor_roles=["reviewer"],
            result_status="rejected",
        )

        assert updated.result_status == "rejected"
        assert updated.publisher is not None
        reviews = _reviews(db)
        assert len(reviews) == 1
        assert reviews[0].reviewer_id == reviewer.id
        assert reviews[0].decision == "rejected"
        assert reviews[0].comments == ""

    def test_decision_update_keeps_comments(
        self, db, event, make_paper, reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)
        submit_review(
            db,
            event_id=event.id,
            paper_id=paper.id,
            reviewer_id=reviewer.id,
            comments="Strong contribution",
            insights=["novel dataset"],
        )

        decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=reviewer.id,
            actor_roles=["reviewer"],
            result_status="selected",
        )

        (review,) = _reviews(db)
        assert review.decision == "selected"
        assert review.comments == "Strong contribution"
        assert review.insights == ["novel dataset"]

    @pytest.mark.parametrize("roles", [["coordinator"], ["admin"], ["reviewer", "admin"]])
    def test_coordinator_override_touches_no_reviews(
        self, db, event, make_paper, coordinator, roles
    ):
        paper = make_paper(event)

        updated = decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=coordinator.id,
            actor_roles=roles,
            result_status="selected",
        )

        assert updated.result_status == "selected"
        assert _reviews(db) == []

    def test_last_decision_wins(
        self, db, event, make_paper, reviewer, other_reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)
        assign(paper, other_reviewer)

        decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=reviewer.id,
            actor_roles=["reviewer"],
            result_status="selected",
        )
        updated = decide(
            db,
            event_id=event.id,
            paper_id=paper.id,
            actor_id=other_reviewer.id,
            actor_roles=["reviewer"],
            result_status="rejected",
        )

        assert updated.result_status == "rejected"
        decisions = {r.reviewer_id: r.decision for r in _reviews(db)}
        assert decisions == {reviewer.id: "selected", other_reviewer.id: "rejected"}

    def test_failed_review_write_leaves_paper_undecided(
        self, db, event, make_paper, reviewer, assign
    ):
        paper = make_paper(event)
        assign(paper, reviewer)
        failure = OperationalError("INSERT INTO reviews", {}, Exception("disk I/O error"))

        with mock.patch.object(review_crud, "_upsert", side_effect=failure):
            with pytest.raises(OperationalError):
                decide(
                    db,
                    event_id=event.id,
                    paper_id=paper.id,
                    actor_id=reviewer.id,
                    actor_roles=["reviewer"],
                    result_status="selected",
                )

        db.refresh(paper)
        assert paper.result_status == "submitted"
        assert _reviews(db) == []


def test_review_upsert_rejects_unsupported_dialect():
    session = mock.Mock()
    session.get_bind.return_value.dialect.name = "mysql"

    with pytest.raises(ValueError, match="postgresql or sqlite"):
        _insert_for(session)
