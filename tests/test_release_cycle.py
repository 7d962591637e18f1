from datetime import date, timedelta

import pytest

from app.core.errors import (
    AlreadyClosedError,
    AlreadyOpenError,
    CollaboratorError,
    DuplicateSubmissionError,
    NotAMemberError,
    SchemaLockedError,
    TooSoonError,
    ValidationError,
)
from app.core.release_cycle import CycleState, days_until_release, release_date_for
from app.models.audit_event import AuditEvent
from app.models.newsletter import Newsletter
from app.models.question_response import QuestionResponse
from app.schemas.answer import CheckboxAnswer, TextAnswer
from app.schemas.question import QuestionIn, QuestionType

from tests.helpers import add_members, create_questions, make_engine, question, set_last_release

TODAY = date(2024, 6, 1)
GROUP = "g1"


class _BrokenCompiler:
    def compile(self, group_id, cycle_number, schema, responses):
        raise RuntimeError("renderer offline")


class _BrokenMembership:
    def list_members(self, group_id):
        raise ConnectionError("directory unavailable")


def _answers(text: str = "hello"):
    return [TextAnswer(value=text), CheckboxAnswer(value=["A"])]


@pytest.fixture()
def group(db_session):
    add_members(db_session, GROUP, "u1", "u2")
    create_questions(db_session, GROUP, [
        question(1, QuestionType.TEXT),
        question(2, QuestionType.CHECKBOX, options=["A", "B"]),
    ])
    return GROUP


@pytest.fixture()
def engine(db_session, group):
    return make_engine(db_session, today=TODAY)


def test_release_gate_helpers():
    assert release_date_for(None, 30) is None
    assert days_until_release(None, 30, TODAY) == 0
    assert days_until_release(TODAY - timedelta(days=29), 30, TODAY) == 1
    assert days_until_release(TODAY - timedelta(days=30), 30, TODAY) == 0
    assert days_until_release(TODAY - timedelta(days=90), 30, TODAY) == 0


def test_new_group_starts_closed(engine):
    status = engine.status(GROUP)

    assert status.state == CycleState.CLOSED.value
    assert status.cycle_number == 0
    assert not status.accepting_responses
    assert not status.can_generate
    assert status.days_until_release == 0
    assert status.completion_ratio == 0.0


def test_open_snapshots_members_and_locks_schema(engine, db_session):
    cycle = engine.open_for_responses(GROUP, actor="u1")

    assert cycle.state == CycleState.OPEN.value
    assert cycle.accepting_responses
    assert cycle.cycle_number == 1
    assert cycle.expected_responder_ids == ["u1", "u2"]
    assert engine.schema(GROUP).locked
    assert engine.reminder_targets(GROUP) == ["u1", "u2"]

    with pytest.raises(SchemaLockedError):
        engine.edit_schema(GROUP, lambda s: s.remove(1))
    assert engine.schema(GROUP).question_count() == 2

    actions = [e.action for e in db_session.query(AuditEvent).all()]
    assert "CYCLE_OPENED" in actions


def test_open_twice_is_rejected(engine):
    engine.open_for_responses(GROUP)

    with pytest.raises(AlreadyOpenError):
        engine.open_for_responses(GROUP)

    assert engine.get_cycle(GROUP).cycle_number == 1


def test_all_members_answering_moves_to_collected(engine):
    engine.open_for_responses(GROUP)

    engine.accept_submission(GROUP, "u1", _answers())
    assert engine.status(GROUP).completion_ratio == 0.5
    assert engine.reminder_targets(GROUP) == ["u2"]

    engine.accept_submission(GROUP, "u2", _answers("hi"))

    status = engine.status(GROUP)
    assert status.state == CycleState.COLLECTED.value
    assert not status.accepting_responses
    assert status.completion_ratio == 1.0
    assert status.outstanding_responders == []
    assert status.can_generate
    assert engine.reminder_targets(GROUP) == []


def test_duplicate_submission_is_rejected(engine, db_session):
    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u1", _answers())

    with pytest.raises(DuplicateSubmissionError):
        engine.accept_submission(GROUP, "u1", _answers("again"))

    assert db_session.query(QuestionResponse).count() == 1
    assert engine.status(GROUP).received_responders == 1
    assert engine.has_submitted(GROUP, "u1")
    assert not engine.has_submitted(GROUP, "u2")


def test_invalid_submission_reports_every_position(engine, db_session):
    engine.open_for_responses(GROUP)

    with pytest.raises(ValidationError) as exc:
        engine.accept_submission(GROUP, "u1", [TextAnswer(value="hello"), CheckboxAnswer(value=[])])

    assert exc.value.errors == ["", "Please choose at least one option for Question 2."]
    assert db_session.query(QuestionResponse).count() == 0
    assert engine.status(GROUP).state == CycleState.OPEN.value


def test_surplus_answers_are_rejected(engine):
    engine.open_for_responses(GROUP)

    with pytest.raises(ValidationError) as exc:
        engine.accept_submission(GROUP, "u1", _answers() + [TextAnswer(value="extra")])

    assert exc.value.errors == ["", ""]


def test_submission_requires_open_cycle(engine):
    with pytest.raises(AlreadyClosedError):
        engine.accept_submission(GROUP, "u1", _answers())

    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u1", _answers())
    engine.accept_submission(GROUP, "u2", _answers())

    # COLLECTED no longer accepts, even from new members
    add_members(engine.db, GROUP, "u3")
    with pytest.raises(AlreadyClosedError):
        engine.accept_submission(GROUP, "u3", _answers())


def test_non_member_cannot_submit(engine):
    engine.open_for_responses(GROUP)

    with pytest.raises(NotAMemberError):
        engine.accept_submission(GROUP, "stranger", _answers())


def test_member_joining_mid_cycle_is_not_counted(engine, db_session):
    engine.open_for_responses(GROUP)
    add_members(db_session, GROUP, "u3")

    engine.accept_submission(GROUP, "u3", _answers())

    status = engine.status(GROUP)
    assert status.expected_responders == 2
    assert status.received_responders == 0
    assert status.state == CycleState.OPEN.value


def test_generate_closes_cycle_and_records_release(engine, db_session):
    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u2", _answers("second"))
    engine.accept_submission(GROUP, "u1", _answers("first"))

    newsletter = engine.generate_newsletter(GROUP, actor="u1")

    cycle = engine.get_cycle(GROUP)
    assert cycle.state == CycleState.CLOSED.value
    assert not cycle.accepting_responses
    assert cycle.last_release_date == TODAY
    assert not engine.schema(GROUP).locked

    content = newsletter.content
    assert content["cycle_number"] == 1
    assert content["response_count"] == 2
    assert [e["responder_id"] for e in content["sections"][0]["entries"]] == ["u2", "u1"]
    assert content["sections"][1]["entries"][0]["value"] == ["A"]

    with pytest.raises(AlreadyClosedError):
        engine.generate_newsletter(GROUP)

    assert db_session.query(Newsletter).count() == 1
    assert engine.get_cycle(GROUP).last_release_date == TODAY


def test_generate_is_allowed_before_everyone_answered(engine):
    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u1", _answers())

    newsletter = engine.generate_newsletter(GROUP)

    assert newsletter.content["response_count"] == 1
    assert engine.get_cycle(GROUP).state == CycleState.CLOSED.value


def test_release_gate_counts_whole_days(db_session, group):
    first = make_engine(db_session, today=TODAY - timedelta(days=29))
    first.open_for_responses(GROUP)
    first.generate_newsletter(GROUP)

    engine = make_engine(db_session, today=TODAY)
    engine.open_for_responses(GROUP)

    with pytest.raises(TooSoonError) as exc:
        engine.generate_newsletter(GROUP)

    assert exc.value.days_left == 1
    assert exc.value.release_date == TODAY + timedelta(days=1)
    assert engine.get_cycle(GROUP).state == CycleState.OPEN.value
    assert engine.status(GROUP).can_generate is False

    set_last_release(db_session, GROUP, TODAY - timedelta(days=30))
    engine.generate_newsletter(GROUP)
    assert engine.get_cycle(GROUP).last_release_date == TODAY


def test_compiler_failure_leaves_cycle_untouched(db_session, group):
    engine = make_engine(db_session, today=TODAY, compiler=_BrokenCompiler())
    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u1", _answers())

    with pytest.raises(CollaboratorError):
        engine.generate_newsletter(GROUP)

    cycle = engine.get_cycle(GROUP)
    assert cycle.state == CycleState.OPEN.value
    assert cycle.accepting_responses
    assert cycle.last_release_date is None
    assert db_session.query(Newsletter).count() == 0


def test_membership_failure_blocks_open(db_session, group):
    engine = make_engine(db_session, today=TODAY, membership=_BrokenMembership())

    with pytest.raises(CollaboratorError):
        engine.open_for_responses(GROUP)

    assert engine.get_cycle(GROUP).state == CycleState.CLOSED.value


def test_next_cycle_starts_fresh(db_session, group):
    engine = make_engine(db_session, today=TODAY)
    engine.open_for_responses(GROUP)
    engine.accept_submission(GROUP, "u1", _answers())
    engine.generate_newsletter(GROUP)

    later = make_engine(db_session, today=TODAY + timedelta(days=31))
    later.edit_schema(GROUP, lambda s: s.append(QuestionIn(prompt="New", question_type=QuestionType.TEXT)))
    cycle = later.open_for_responses(GROUP)

    assert cycle.cycle_number == 2
    assert not later.has_submitted(GROUP, "u1")
    assert later.status(GROUP).received_responders == 0

    later.accept_submission(GROUP, "u1", _answers() + [TextAnswer(value="more")])
    assert later.has_submitted(GROUP, "u1")


def test_empty_group_collects_nothing(db_session):
    engine = make_engine(db_session, today=TODAY)
    create_questions(db_session, "empty", [question(1, QuestionType.TEXT)])

    engine.open_for_responses("empty")
    status = engine.status("empty")

    assert status.expected_responders == 0
    assert status.completion_ratio == 1.0
    assert engine.reminder_targets("empty") == []


def test_concurrent_duplicate_is_caught_by_unique_constraint(engine, db_session, monkeypatch):
    import app.core.release_cycle as release_cycle

    engine.open_for_responses(GROUP)
    validate = release_cycle.validate_response

    def racing_validate(schema, answers):
        # another request for u1 commits between the duplicate check and the insert
        db_session.add(QuestionResponse(
            group_id=GROUP, cycle_number=1, responder_id="u1", answers=[],
        ))
        db_session.commit()
        return validate(schema, answers)

    monkeypatch.setattr(release_cycle, "validate_response", racing_validate)

    with pytest.raises(DuplicateSubmissionError):
        engine.accept_submission(GROUP, "u1", _answers())

    assert db_session.query(QuestionResponse).filter_by(responder_id="u1").count() == 1
    status = engine.status(GROUP)
    assert status.received_responders == 1
    assert status.state == CycleState.OPEN.value
    assert status.outstanding_responders == ["u2"]
    assert [e.action for e in db_session.query(AuditEvent).filter_by(action="RESPONSE_SUBMITTED")] == []
