from datetime import datetime

from pydantic import BaseModel

from app.schemas.answer import AnswerValue
from app.schemas.question import QuestionType


class RawAnswerIn(BaseModel):
    """
    One position of a submitted form, before encoding.

    IMAGE values carry the original upload as base64 (a data URL is accepted too);
    CHECKBOX values carry the selected options.
    """
    type: QuestionType
    value: str | list[str] | None = None


class SubmitResponsePayload(BaseModel):
    responses: list[RawAnswerIn | None]


class ResponseOut(BaseModel):
    id: str
    group_id: str
    cycle_number: int
    responder_id: str
    answers: list[AnswerValue]
    submitted_at: datetime
