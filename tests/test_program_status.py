import pytest

from reviewhub.errors import Forbidden, ValidationError
from reviewhub.models import ProgramStatus
from reviewhub.services.authz import resolve_principal
from reviewhub.services.program_status import TRANSITIONS, next_status, transition_program


@pytest.fixture
def actors(factory):
    coalition = factory.coalition()
    org = factory.org(coalition=coalition)
    program = factory.program(org)
    org_admin = factory.user()
    factory.grant(org_admin, "org", org.id)
    manager = factory.user()
    factory.grant(manager, "coalition", coalition.id, role="manager")
    return {
        "program": program,
        "org_admin": resolve_principal(org_admin.id),
        "manager": resolve_principal(manager.id),
        "super": resolve_principal(factory.user(role="superadmin").id),
        "outsider": resolve_principal(factory.user().id),
    }


def test_full_lifecycle(actors):
    program = actors["program"]
    assert program.review_status == ProgramStatus.DRAFT

    p = transition_program(actors["org_admin"], program.id, "submit", note="please review")
    assert p.review_status == ProgramStatus.SUBMITTED and p.review_note == "please review"

    p = transition_program(actors["super"], program.id, "request_changes", note="fix dates")
    assert p.review_status == ProgramStatus.CHANGES_REQUESTED

    p = transition_program(actors["manager"], program.id, "submit")
    assert p.review_status == ProgramStatus.SUBMITTED

    p = transition_program(actors["super"], program.id, "approve")
    assert p.review_status == ProgramStatus.PUBLISHED

    p = transition_program(actors["super"], program.id, "unpublish")
    assert p.review_status == ProgramStatus.UNPUBLISHED

    p = transition_program(actors["org_admin"], program.id, "submit")
    assert p.review_status == ProgramStatus.SUBMITTED


def test_resubmit_while_pending_changes_only_updates_note(actors):
    program = actors["program"]
    transition_program(actors["org_admin"], program.id, "submit")
    transition_program(actors["super"], program.id, "approve")
    p = transition_program(actors["org_admin"], program.id, "propose_changes", note="new deadline")
    assert p.review_status == ProgramStatus.PENDING_CHANGES

    p = transition_program(actors["org_admin"], program.id, "submit", note="and a new banner")
    assert p.review_status == ProgramStatus.PENDING_CHANGES
    assert p.review_note == "and a new banner"


def test_only_superadmin_reviews(actors):
    program = actors["program"]
    transition_program(actors["org_admin"], program.id, "submit")
    for who in ("org_admin", "manager", "outsider"):
        with pytest.raises(Forbidden):
            transition_program(actors[who], program.id, "approve")
    assert transition_program(actors["super"], program.id, "approve").review_status == ProgramStatus.PUBLISHED


def test_org_admin_unpublish_needs_flag(actors, app):
    from reviewhub.extensions import db
    program = actors["program"]
    transition_program(actors["org_admin"], program.id, "submit")
    transition_program(actors["super"], program.id, "approve")

    with pytest.raises(Forbidden):
        transition_program(actors["org_admin"], program.id, "unpublish")

    program.org_can_unpublish = True
    db.session.commit()
    with pytest.raises(Forbidden):
        transition_program(actors["manager"], program.id, "unpublish")
    p = transition_program(actors["org_admin"], program.id, "unpublish")
    assert p.review_status == ProgramStatus.UNPUBLISHED


def test_outsider_forbidden_before_state_check(actors):
    with pytest.raises(Forbidden):
        transition_program(actors["outsider"], actors["program"].id, "submit")


def test_invalid_transitions(actors):
    program = actors["program"]
    with pytest.raises(ValidationError):
        transition_program(actors["super"], program.id, "approve")
    with pytest.raises(ValidationError):
        transition_program(actors["super"], program.id, "teleport")
    assert program.review_status == ProgramStatus.DRAFT


def test_transition_table_is_closed():
    for status in ProgramStatus:
        for action in ("submit", "propose_changes", "approve", "request_changes", "unpublish"):
            if (status, action) in TRANSITIONS:
                assert next_status(status, action) == TRANSITIONS[(status, action)]
            else:
                with pytest.raises(ValidationError):
                    next_status(status, action)
