from fastapi import APIRouter, Depends, status

from app.api.deps import get_codec, get_engine, require_member
from app.api.questions import to_out as question_to_out
from app.core.answer_codec import AnswerCodec
from app.core.errors import AlreadyClosedError, DuplicateSubmissionError, ValidationError
from app.core.release_cycle import ReleaseCycleEngine
from app.core.response_validation import has_errors, validate_response
from app.core.security import get_current_member
from app.models.question_response import QuestionResponse
from app.schemas.answer import answer_adapter
from app.schemas.question import GroupFormOut
from app.schemas.response import ResponseOut, SubmitResponsePayload

router = APIRouter(prefix="/groups/{group_id}", tags=["responses"])


def to_out(r: QuestionResponse) -> ResponseOut:
    return ResponseOut(
        id=str(r.id),
        group_id=r.group_id,
        cycle_number=r.cycle_number,
        responder_id=r.responder_id,
        answers=[answer_adapter.validate_python(a) for a in r.answers],
        submitted_at=r.submitted_at,
    )


@router.get("/form", response_model=GroupFormOut)
def get_form(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(get_current_member),
):
    cycle = engine.get_cycle(group_id)
    return GroupFormOut(
        group_id=group_id,
        cycle_number=cycle.cycle_number,
        accepting_responses=cycle.accepting_responses,
        already_submitted=engine.has_submitted(group_id, member),
        questions=[question_to_out(q) for q in engine.schema(group_id)],
    )


@router.post("/responses", response_model=ResponseOut, status_code=status.HTTP_201_CREATED)
def submit_response(
    group_id: str,
    payload: SubmitResponsePayload,
    engine: ReleaseCycleEngine = Depends(get_engine),
    codec: AnswerCodec = Depends(get_codec),
    member: str = Depends(require_member),
):
    """
    Encode every answer (images are compressed here, outside the group lock), then hand
    the encoded response to the engine, which re-checks state and records it once.
    """
    if not engine.get_cycle(group_id).accepting_responses:
        raise AlreadyClosedError("Sorry, this form is closed now. Please check back later.")
    if engine.has_submitted(group_id, member):
        raise DuplicateSubmissionError()

    schema = engine.schema(group_id)
    answers, encoding_errors = codec.encode_response(schema, payload.responses)

    if has_errors(encoding_errors):
        errors = [
            enc or val
            for enc, val in zip(encoding_errors, validate_response(schema, answers))
        ]
        raise ValidationError(errors)

    if len(payload.responses) > schema.question_count():
        raise ValidationError(
            validate_response(schema, answers),
            message=f"Expected {schema.question_count()} answers, got {len(payload.responses)}",
        )

    row = engine.accept_submission(group_id, member, answers)
    return to_out(row)
