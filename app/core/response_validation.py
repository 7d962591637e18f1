from __future__ import annotations

import base64
import binascii
from typing import Sequence

from app.core.answer_codec import JPEG_DATA_URL_PREFIX
from app.schemas.answer import AnswerValue, ImageAnswer
from app.schemas.question import QuestionType


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _is_encoded_image(answer: ImageAnswer) -> bool:
    if not answer.value.startswith(JPEG_DATA_URL_PREFIX):
        return False
    payload = answer.value[len(JPEG_DATA_URL_PREFIX):]
    if not payload:
        return False
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _validate_one(qtype: QuestionType, n: int, answer: AnswerValue | None) -> str:
    """Returns the user-facing message for position n (1-based), or "" if the answer is fine."""
    if answer is None:
        return f"Question {n} cannot be empty."

    if answer.type != qtype.value:
        return f"Question {n} has an answer of the wrong type."

    if qtype == QuestionType.TEXT:
        if _blank(answer.value):
            return f"Question {n} cannot be empty."

    elif qtype == QuestionType.IMAGE:
        if not _is_encoded_image(answer):
            return f"Question {n} should have a valid image file."

    elif qtype == QuestionType.DATE:
        if _blank(answer.value):
            return f"Please choose a date for Question {n}."

    elif qtype == QuestionType.TIME:
        if _blank(answer.value):
            return f"Please choose a time for Question {n}."

    elif qtype == QuestionType.DROPDOWN:
        if _blank(answer.value):
            return f"Please choose an option for Question {n}."

    elif qtype == QuestionType.CHECKBOX:
        if not answer.value:
            return f"Please choose at least one option for Question {n}."

    return ""


def validate_response(schema, answers: Sequence[AnswerValue | None]) -> list[str]:
    """
    One message per question, in schema order; "" where the answer is valid.
    Positions past the end of `answers` count as absent. Never short-circuits.
    """
    errors: list[str] = []
    for question in schema:
        pos = question.index - 1
        answer = answers[pos] if pos < len(answers) else None
        errors.append(_validate_one(question.question_type, question.index, answer))
    return errors


def has_errors(errors: Sequence[str]) -> bool:
    return any(errors)
