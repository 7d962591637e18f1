from __future__ import annotations

import uuid
from typing import Iterable, Iterator

from sqlalchemy.orm import Session

from app.core.errors import SchemaLockedError
from app.models.question import Question
from app.schemas.question import QuestionDefinition, QuestionIn, QuestionType, QuestionUpdate


class QuestionSchema:
    """
    Ordered questions of one group.

    Indices are 1-based and kept dense: removing a question shifts the ones after it,
    so answer position i always correlates with question index i + 1.
    A locked schema (cycle not CLOSED) rejects every mutation with SchemaLockedError.
    """

    def __init__(self, questions: Iterable[QuestionDefinition] = (), *, locked: bool = False):
        ordered = sorted(questions, key=lambda q: q.index)
        self._questions: list[QuestionDefinition] = [
            q if q.index == i else q.model_copy(update={"index": i})
            for i, q in enumerate(ordered, start=1)
        ]
        self.locked = locked

    def __iter__(self) -> Iterator[QuestionDefinition]:
        return iter(tuple(self._questions))

    def __len__(self) -> int:
        return len(self._questions)

    def question_count(self) -> int:
        return len(self._questions)

    def get(self, index: int) -> QuestionDefinition | None:
        if 1 <= index <= len(self._questions):
            return self._questions[index - 1]
        return None

    def _ensure_unlocked(self) -> None:
        if self.locked:
            raise SchemaLockedError()

    def append(self, question: QuestionIn) -> QuestionDefinition:
        self._ensure_unlocked()
        q = QuestionDefinition(
            **question.model_dump(), id=str(uuid.uuid4()), index=len(self._questions) + 1
        )
        self._questions.append(q)
        return q

    def update(self, index: int, changes: QuestionUpdate) -> QuestionDefinition:
        self._ensure_unlocked()
        current = self._require(index)

        patch = changes.model_dump(exclude_unset=True)
        new_type = patch.get("question_type", current.question_type)
        if "options" not in patch and not QuestionType(new_type).is_multiple_option:
            patch["options"] = None

        q = QuestionDefinition(**{**current.model_dump(), **patch})
        self._questions[index - 1] = q
        return q

    def remove(self, index: int) -> QuestionDefinition:
        self._ensure_unlocked()
        removed = self._require(index)
        del self._questions[index - 1]
        self._questions = [
            q.model_copy(update={"index": i}) for i, q in enumerate(self._questions, start=1)
        ]
        return removed

    def replace_all(self, questions: Iterable[QuestionIn]) -> None:
        self._ensure_unlocked()
        self._questions = [
            QuestionDefinition(**q.model_dump(), id=str(uuid.uuid4()), index=i)
            for i, q in enumerate(questions, start=1)
        ]

    def _require(self, index: int) -> QuestionDefinition:
        q = self.get(index)
        if q is None:
            raise KeyError(f"Question {index} not found")
        return q


def _row_to_definition(row: Question) -> QuestionDefinition:
    return QuestionDefinition(
        id=str(row.id),
        index=row.question_index,
        prompt=row.prompt,
        hint=row.hint,
        question_type=QuestionType(row.question_type),
        options=row.options,
    )


def load_schema(db: Session, group_id: str, *, locked: bool = False) -> QuestionSchema:
    rows = (
        db.query(Question)
        .filter(Question.group_id == group_id)
        .order_by(Question.question_index)
        .all()
    )
    return QuestionSchema((_row_to_definition(r) for r in rows), locked=locked)


def save_schema(db: Session, group_id: str, schema: QuestionSchema) -> None:
    # Deletes are flushed first so re-inserted indices can't trip uq_questions_group_index.
    for row in db.query(Question).filter(Question.group_id == group_id).all():
        db.delete(row)
    db.flush()

    for q in schema:
        db.add(
            Question(
                id=uuid.UUID(q.id) if q.id else uuid.uuid4(),
                group_id=group_id,
                question_index=q.index,
                prompt=q.prompt,
                hint=q.hint,
                question_type=q.question_type.value,
                options=q.options,
            )
        )
    db.flush()
