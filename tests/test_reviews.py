import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import IntegrityError

from config import TestConfig
from conftest import T1, Factory
from reviewhub import create_app
from reviewhub.errors import Conflict, Forbidden, NotAuthenticated, NotFound, ValidationError
from reviewhub.extensions import db
from reviewhub.models import ReviewRecord
from reviewhub.services import reviews as review_service
from reviewhub.services.authz import resolve_principal
from reviewhub.services.reviews import (
    authorize_review_access, get_review, list_reviews, resolve_decision, upsert_review,
)


@pytest.fixture
def setup(factory):
    org = factory.org()
    program = factory.program(org)
    application = factory.application(program)
    r1 = factory.user()
    r2 = factory.user()
    return application, r1, r2


def test_reviewers_get_independent_records(setup, clock):
    application, r1, r2 = setup
    upsert_review(application.id, r1.id, {"fit": 4}, "solid", 8, status="submitted")
    upsert_review(application.id, r2.id, {"fit": 2}, "weak", 3)

    mine = get_review(application.id, r1.id)
    theirs = get_review(application.id, r2.id)
    assert mine.id != theirs.id
    assert mine.comments == "solid" and mine.status == "submitted"
    assert theirs.comments == "weak" and theirs.status == "draft"

    upsert_review(application.id, r2.id, {"fit": 5}, "changed my mind", 9)
    mine = get_review(application.id, r1.id)
    assert mine.comments == "solid"
    assert mine.ratings == {"fit": 4}
    assert mine.score == 8


def test_repeated_upsert_keeps_one_record(setup, clock):
    application, r1, _ = setup
    for i in range(3):
        clock.advance(minutes=1)
        upsert_review(application.id, r1.id, {"fit": i}, f"pass {i}", i)
    rows = ReviewRecord.query.filter_by(application_id=application.id, reviewer_id=r1.id).all()
    assert len(rows) == 1
    assert rows[0].comments == "pass 2"
    assert rows[0].updated_at == clock.now


def test_status_defaults_to_draft_and_submitted_at_stays_empty(setup, clock):
    application, r1, _ = setup
    review = upsert_review(application.id, r1.id, {}, None, None)
    assert review.status == "draft"
    assert review.submitted_at is None


def test_submitted_at_lifecycle(setup, clock):
    application, r1, _ = setup
    first = clock.now
    upsert_review(application.id, r1.id, {}, "x", 7, status="submitted")
    assert get_review(application.id, r1.id).submitted_at == first

    clock.advance(hours=1)
    reverted = upsert_review(application.id, r1.id, {}, "x", 7, status="draft")
    assert reverted.status == "draft"
    # kept so a later resubmit can be told apart from the published one
    assert reverted.submitted_at == first
    assert reverted.updated_at == clock.now

    clock.advance(hours=1)
    edited = upsert_review(application.id, r1.id, {}, "edited draft", 7, status="draft")
    assert edited.submitted_at == first

    clock.advance(hours=1)
    resubmitted = upsert_review(application.id, r1.id, {}, "final", 7, status="submitted")
    assert resubmitted.submitted_at == clock.now


def test_decision_written_to_field_and_legacy_key(setup, clock):
    application, r1, _ = setup
    review = upsert_review(application.id, r1.id, {"fit": 3}, None, 5, decision="accepted")
    assert review.decision == "accepted"
    assert review.ratings == {"fit": 3, "decision": "accepted"}


def test_omitted_decision_keeps_stored_value(setup, clock):
    application, r1, _ = setup
    upsert_review(application.id, r1.id, {}, None, 5, decision="waitlisted")
    review = upsert_review(application.id, r1.id, {"fit": 1}, "later edit", 5)
    assert review.decision == "waitlisted"
    assert resolve_decision(review) == "waitlisted"


def test_omitted_decision_keeps_legacy_ratings_value(setup, clock):
    application, r1, _ = setup
    db.session.add(ReviewRecord(
        application_id=application.id, reviewer_id=r1.id, ratings={"decision": "waitlisted"},
        status="submitted", decision=None, submitted_at=T1, created_at=T1, updated_at=T1,
    ))
    db.session.commit()

    review = upsert_review(application.id, r1.id, {"fit": 2}, "edit", 5, status="submitted")
    assert review.ratings == {"fit": 2}
    assert review.decision == "waitlisted"
    assert resolve_decision(review) == "waitlisted"


def test_resolve_decision_falls_back_to_ratings():
    legacy = ReviewRecord(decision=None, ratings={"decision": "rejected"})
    assert resolve_decision(legacy) == "rejected"
    assert resolve_decision(ReviewRecord(decision="", ratings={})) is None
    assert resolve_decision(ReviewRecord(decision="accepted", ratings={"decision": "rejected"})) == "accepted"
    assert resolve_decision(None) is None


def test_requires_principal(setup):
    application, _, _ = setup
    with pytest.raises(NotAuthenticated):
        upsert_review(application.id, None, {}, None, None)
    with pytest.raises(NotAuthenticated):
        get_review(application.id, None)


@pytest.mark.parametrize("kwargs,field", [
    ({"status": "final"}, "status"),
    ({"score": "high"}, "score"),
    ({"score": True}, "score"),
])
def test_validation(setup, kwargs, field):
    application, r1, _ = setup
    args = {"ratings": {}, "comments": None, "score": None}
    args.update(kwargs)
    with pytest.raises(ValidationError) as exc:
        upsert_review(application.id, r1.id, args["ratings"], args["comments"], args["score"],
                      status=args.get("status"))
    assert field in exc.value.errors
    assert ReviewRecord.query.count() == 0


def test_ratings_must_be_a_mapping(setup):
    application, r1, _ = setup
    with pytest.raises(ValidationError) as exc:
        upsert_review(application.id, r1.id, ["a"], None, None)
    assert "ratings" in exc.value.errors


def test_unknown_application(setup):
    _, r1, _ = setup
    with pytest.raises(NotFound):
        upsert_review(9999, r1.id, {}, None, None)


def test_upsert_is_a_single_conflict_statement(ctx):
    stmt = review_service._upsert_statement({
        "application_id": 1, "reviewer_id": 2, "ratings": {}, "comments": None, "score": None,
        "status": "draft", "decision": None, "submitted_at": None,
        "created_at": None, "updated_at": None,
    })
    sql = str(stmt.compile(dialect=sqlite.dialect()))
    assert "ON CONFLICT (application_id, reviewer_id) DO UPDATE" in sql


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'reviews.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_racing_first_saves_end_as_one_record(file_app):
    with file_app.app_context():
        factory = Factory()
        application = factory.application(factory.program(factory.org()))
        reviewer = factory.user()
        app_id, reviewer_id = application.id, reviewer.id

    # each app context has its own session and connection
    with file_app.app_context():
        assert get_review(app_id, reviewer_id) is None
        with file_app.app_context():
            upsert_review(app_id, reviewer_id, {"fit": 1}, "first", 4, status="submitted")
        review = upsert_review(app_id, reviewer_id, {"fit": 2}, "second", 6)

        assert review.comments == "second"
        assert review.status == "draft"
        assert review.submitted_at is not None
        assert ReviewRecord.query.filter_by(application_id=app_id, reviewer_id=reviewer_id).count() == 1


def test_integrity_error_surfaces_as_conflict(setup, monkeypatch):
    application, r1, _ = setup

    def boom(*args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    monkeypatch.setattr(db.session, "execute", boom)
    with pytest.raises(Conflict):
        upsert_review(application.id, r1.id, {}, None, None)


def test_list_reviews_newest_first(setup, clock):
    application, r1, r2 = setup
    upsert_review(application.id, r1.id, {}, "first", 1)
    clock.advance(minutes=5)
    upsert_review(application.id, r2.id, {}, "second", 2)
    assert [r.comments for r in list_reviews(application.id)] == ["second", "first"]
    with pytest.raises(NotFound):
        list_reviews(4242)


def test_review_access_follows_program_scope(factory):
    coalition = factory.coalition()
    org = factory.org(coalition=coalition)
    program = factory.program(org)
    application = factory.application(program)
    reviewer, other_reviewer, admin, manager, outsider = (factory.user() for _ in range(5))
    factory.grant(reviewer, "program", program.id, role="reviewer")
    factory.grant(other_reviewer, "program", program.id + 1, role="reviewer")
    factory.grant(admin, "org", org.id)
    factory.grant(manager, "coalition", coalition.id, role="manager")

    for allowed in (reviewer, admin, manager):
        assert authorize_review_access(resolve_principal(allowed.id), application.id).id == application.id
    for denied in (other_reviewer, outsider):
        with pytest.raises(Forbidden):
            authorize_review_access(resolve_principal(denied.id), application.id)
    with pytest.raises(NotFound):
        authorize_review_access(resolve_principal(reviewer.id), 9999)
