import pydantic
import pytest

from app.core.errors import SchemaLockedError
from app.core.question_schema import QuestionSchema, load_schema, save_schema
from app.schemas.question import QuestionIn, QuestionType, QuestionUpdate

from tests.helpers import create_questions, question


def _text(prompt: str) -> QuestionIn:
    return QuestionIn(prompt=prompt, question_type=QuestionType.TEXT)


def test_append_assigns_next_index_and_id():
    schema = QuestionSchema()

    first = schema.append(_text("How was your month?"))
    second = schema.append(
        QuestionIn(prompt="Pick", question_type=QuestionType.DROPDOWN, options=["A", "B"])
    )

    assert (first.index, second.index) == (1, 2)
    assert first.id and second.id and first.id != second.id
    assert schema.question_count() == 2
    assert schema.get(2).options == ["A", "B"]
    assert schema.get(3) is None


def test_remove_keeps_indices_dense():
    schema = QuestionSchema([
        question(1, QuestionType.TEXT, prompt="a"),
        question(2, QuestionType.TEXT, prompt="b"),
        question(3, QuestionType.TEXT, prompt="c"),
    ])

    removed = schema.remove(2)

    assert removed.prompt == "b"
    assert [(q.index, q.prompt) for q in schema] == [(1, "a"), (2, "c")]


def test_constructor_normalizes_gaps():
    schema = QuestionSchema([
        question(5, QuestionType.TEXT, prompt="late"),
        question(2, QuestionType.TEXT, prompt="early"),
    ])
    assert [(q.index, q.prompt) for q in schema] == [(1, "early"), (2, "late")]


def test_update_changes_prompt_only():
    schema = QuestionSchema([question(1, QuestionType.CHECKBOX, options=["A", "B"])])

    updated = schema.update(1, QuestionUpdate(prompt="Renamed"))

    assert updated.prompt == "Renamed"
    assert updated.question_type == QuestionType.CHECKBOX
    assert updated.options == ["A", "B"]


def test_update_to_single_value_type_drops_options():
    schema = QuestionSchema([question(1, QuestionType.DROPDOWN, options=["A", "B"])])

    updated = schema.update(1, QuestionUpdate(question_type=QuestionType.TEXT))

    assert updated.question_type == QuestionType.TEXT
    assert updated.options is None


def test_update_to_multiple_option_type_requires_options():
    schema = QuestionSchema([question(1, QuestionType.TEXT)])

    with pytest.raises(pydantic.ValidationError):
        schema.update(1, QuestionUpdate(question_type=QuestionType.CHECKBOX))

    assert schema.get(1).question_type == QuestionType.TEXT


def test_missing_index_raises_key_error():
    schema = QuestionSchema([question(1, QuestionType.TEXT)])
    with pytest.raises(KeyError):
        schema.remove(4)
    with pytest.raises(KeyError):
        schema.update(0, QuestionUpdate(prompt="x"))


def test_locked_schema_rejects_every_mutation():
    schema = QuestionSchema([question(1, QuestionType.TEXT)], locked=True)

    with pytest.raises(SchemaLockedError):
        schema.append(_text("new"))
    with pytest.raises(SchemaLockedError):
        schema.update(1, QuestionUpdate(prompt="x"))
    with pytest.raises(SchemaLockedError):
        schema.remove(1)
    with pytest.raises(SchemaLockedError):
        schema.replace_all([_text("only")])

    assert schema.question_count() == 1


def test_options_must_match_type():
    with pytest.raises(pydantic.ValidationError):
        QuestionIn(prompt="Pick", question_type=QuestionType.CHECKBOX, options=[])
    with pytest.raises(pydantic.ValidationError):
        QuestionIn(prompt="Say", question_type=QuestionType.TEXT, options=["A"])

    q = QuestionIn(prompt="Pick", question_type=QuestionType.CHECKBOX, options=[" A", "A", "", "B"])
    assert q.options == ["A", "B"]


def test_save_and_load_round_trip(db_session):
    create_questions(db_session, "g1", [
        question(1, QuestionType.TEXT, prompt="first"),
        question(2, QuestionType.CHECKBOX, options=["A", "B"], prompt="second"),
    ])

    schema = load_schema(db_session, "g1")
    schema.remove(1)
    schema.append(_text("third"))
    save_schema(db_session, "g1", schema)
    db_session.commit()

    reloaded = load_schema(db_session, "g1", locked=True)
    assert [(q.index, q.prompt) for q in reloaded] == [(1, "second"), (2, "third")]
    assert reloaded.get(1).options == ["A", "B"]
    assert reloaded.locked
    assert load_schema(db_session, "other").question_count() == 0
