from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from PIL import Image, UnidentifiedImageError

from app.core.errors import EncodingError
from app.schemas.answer import (
    AnswerValue,
    CheckboxAnswer,
    DateAnswer,
    DropdownAnswer,
    ImageAnswer,
    TextAnswer,
    TimeAnswer,
)
from app.schemas.question import QuestionDefinition, QuestionType
from app.schemas.response import RawAnswerIn

logger = logging.getLogger(__name__)

JPEG_DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass(frozen=True)
class ImageBudget:
    max_bytes: int = 2 * 1024 * 1024
    max_width: int = 800
    max_height: int = 600
    initial_quality: int = 90
    quality_step: int = 10
    min_quality: int = 5

    @classmethod
    def from_settings(cls, settings) -> "ImageBudget":
        return cls(
            max_bytes=settings.IMAGE_MAX_BYTES,
            max_width=settings.IMAGE_MAX_WIDTH,
            max_height=settings.IMAGE_MAX_HEIGHT,
            initial_quality=settings.IMAGE_INITIAL_QUALITY,
            quality_step=settings.IMAGE_QUALITY_STEP,
            min_quality=settings.IMAGE_MIN_QUALITY,
        )

    def quality_ladder(self) -> Iterator[int]:
        """
        Qualities to try, highest first. Always ends with exactly one attempt at the floor.

        With the defaults that is nine steps (90 down to 10) plus the floor at 5, so ten
        encodes at most, not nine: the last step lands on the floor instead of skipping it.
        """
        quality = self.initial_quality
        while quality > self.min_quality:
            yield quality
            quality -= max(self.quality_step, 1)
        yield self.min_quality

    @property
    def max_attempts(self) -> int:
        return sum(1 for _ in self.quality_ladder())


def payload_size(data_url: str) -> float:
    # bytes represented by a base64 string
    return len(data_url) * 0.75


def _read_image_input(raw: Any) -> bytes:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)

    if hasattr(raw, "read"):
        data = raw.read()
        if isinstance(data, str):
            raise EncodingError("Image must be opened in binary mode")
        return data

    if isinstance(raw, str):
        s = raw.strip()
        if s.startswith("data:"):
            header, _, s = s.partition(",")
            if not header.startswith("data:image/") or not header.endswith(";base64"):
                raise EncodingError("Image must be a base64 image data URL")
        try:
            return base64.b64decode(s, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EncodingError("Image is not valid base64") from exc

    raise EncodingError(f"Unsupported image input: {type(raw).__name__}")


def compress_image(data: bytes, budget: ImageBudget) -> ImageAnswer:
    """
    Downscale to fit the budget's box and re-encode as JPEG, lowering quality step by step
    until the base64 payload fits `max_bytes`. The floor-quality result is accepted
    whatever its size, so this never fails on size and runs at most `max_attempts` times.
    """
    try:
        with Image.open(io.BytesIO(data)) as src:
            frame = src.convert("RGB")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise EncodingError(f"Not a readable image: {exc}") from exc

    frame.thumbnail((budget.max_width, budget.max_height), Image.Resampling.LANCZOS)

    answer: ImageAnswer | None = None
    for attempt, quality in enumerate(budget.quality_ladder(), start=1):
        buf = io.BytesIO()
        frame.save(buf, format="JPEG", quality=quality, optimize=True)
        payload = JPEG_DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")
        size = payload_size(payload)

        logger.debug(
            "image attempt %d quality=%d size=%d budget=%d",
            attempt, quality, size, budget.max_bytes,
        )
        answer = ImageAnswer(value=payload, quality=quality)
        if size <= budget.max_bytes:
            break
    else:
        logger.info("image kept at floor quality %d above budget", budget.min_quality)

    return answer


class AnswerCodec:
    def __init__(self, budget: ImageBudget | None = None):
        self.budget = budget or ImageBudget()

    def encode(self, question: QuestionDefinition, raw: Any) -> AnswerValue:
        qtype = question.question_type

        if qtype == QuestionType.TEXT:
            return TextAnswer(value=self._text(raw) or "")

        if qtype == QuestionType.DATE:
            return DateAnswer(value=self._text(raw))

        if qtype == QuestionType.TIME:
            return TimeAnswer(value=self._text(raw))

        if qtype == QuestionType.DROPDOWN:
            return DropdownAnswer(value=self._text(raw))

        if qtype == QuestionType.CHECKBOX:
            return CheckboxAnswer(value=self._options(question, raw))

        if qtype == QuestionType.IMAGE:
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                return ImageAnswer(value="")
            return compress_image(_read_image_input(raw), self.budget)

        raise EncodingError(f"Unknown question type: {qtype}")

    def decode(self, answer: AnswerValue) -> str | list[str] | None:
        if isinstance(answer, CheckboxAnswer):
            return list(answer.value)
        return answer.value

    def decode_image_bytes(self, answer: ImageAnswer) -> bytes:
        return _read_image_input(answer.value)

    def encode_response(
        self,
        schema,
        raw_answers: Sequence[RawAnswerIn | None],
    ) -> tuple[list[AnswerValue | None], list[str]]:
        """
        Encode a positional form submission. Returns (answers, errors), both the length
        of the schema; an error message replaces the answer at positions that failed.
        """
        answers: list[AnswerValue | None] = []
        errors: list[str] = []

        for question in schema:
            pos = question.index - 1
            raw = raw_answers[pos] if pos < len(raw_answers) else None

            if raw is None:
                answers.append(None)
                errors.append("")
                continue

            if raw.type != question.question_type:
                answers.append(None)
                errors.append(f"Question {question.index} has an answer of the wrong type.")
                continue

            try:
                answers.append(self.encode(question, raw.value))
                errors.append("")
            except EncodingError as exc:
                answers.append(None)
                errors.append(f"Question {question.index}: {exc.message}")

        return answers, errors

    @staticmethod
    def _text(raw: Any) -> str | None:
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise EncodingError(f"Expected text, got {type(raw).__name__}")
        return raw.strip()

    @staticmethod
    def _options(question: QuestionDefinition, raw: Any) -> list[str]:
        if raw is None:
            return []
        if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple, set, frozenset)):
            raise EncodingError("Expected a list of options")

        chosen = set()
        for item in raw:
            if not isinstance(item, str) or item not in (question.options or []):
                raise EncodingError(f"'{item}' is not an option")
            chosen.add(item)

        # keep the question's option order
        return [opt for opt in question.options or [] if opt in chosen]
