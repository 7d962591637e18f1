import pydantic
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_engine, require_member
from app.core.question_schema import QuestionSchema
from app.core.release_cycle import ReleaseCycleEngine
from app.core.security import get_current_member
from app.schemas.question import (
    QuestionDefinition,
    QuestionIn,
    QuestionOut,
    QuestionsReplace,
    QuestionUpdate,
)

router = APIRouter(prefix="/groups/{group_id}/questions", tags=["questions"])


def to_out(q: QuestionDefinition) -> QuestionOut:
    return QuestionOut(
        id=q.id,
        index=q.index,
        prompt=q.prompt,
        hint=q.hint,
        question_type=q.question_type,
        options=q.options,
    )


def _schema_out(schema: QuestionSchema) -> list[QuestionOut]:
    return [to_out(q) for q in schema]


@router.get("", response_model=list[QuestionOut])
def list_questions(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    _: str = Depends(get_current_member),
):
    return _schema_out(engine.schema(group_id))


@router.put("", response_model=list[QuestionOut])
def replace_questions(
    group_id: str,
    payload: QuestionsReplace,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    """Replace the whole questionnaire; indices follow list order."""
    _, schema = engine.edit_schema(
        group_id, lambda s: s.replace_all(payload.questions), actor=member
    )
    return _schema_out(schema)


@router.post("", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
def append_question(
    group_id: str,
    payload: QuestionIn,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    q, schema = engine.edit_schema(group_id, lambda s: s.append(payload), actor=member)
    return to_out(schema.get(q.index))


@router.patch("/{index}", response_model=QuestionOut)
def update_question(
    group_id: str,
    index: int,
    payload: QuestionUpdate,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    try:
        q, schema = engine.edit_schema(
            group_id, lambda s: s.update(index, payload), actor=member
        )
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Question {index} not found")
    except pydantic.ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    return to_out(schema.get(q.index))


@router.delete("/{index}", response_model=list[QuestionOut])
def remove_question(
    group_id: str,
    index: int,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    """Remove a question; the ones after it move up one index."""
    try:
        _, schema = engine.edit_schema(group_id, lambda s: s.remove(index), actor=member)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Question {index} not found")
    return _schema_out(schema)
