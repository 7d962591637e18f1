from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QuestionType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    DATE = "DATE"
    TIME = "TIME"
    CHECKBOX = "CHECKBOX"
    DROPDOWN = "DROPDOWN"

    @property
    def is_multiple_option(self) -> bool:
        return self in (QuestionType.CHECKBOX, QuestionType.DROPDOWN)


class QuestionIn(BaseModel):
    prompt: str = Field(min_length=1, max_length=500)
    hint: str | None = Field(default=None, max_length=500)
    question_type: QuestionType
    options: list[str] | None = None

    @field_validator("options")
    @classmethod
    def _dedupe_options(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        out: list[str] = []
        for opt in v:
            opt = opt.strip()
            if opt and opt not in out:
                out.append(opt)
        return out

    @model_validator(mode="after")
    def _options_match_type(self):
        if self.question_type.is_multiple_option:
            if not self.options:
                raise ValueError(f"Options not found for {self.question_type.value} question")
        elif self.options:
            raise ValueError(f"{self.question_type.value} questions do not take options")
        return self


class QuestionUpdate(BaseModel):
    prompt: str | None = Field(default=None, min_length=1, max_length=500)
    hint: str | None = Field(default=None, max_length=500)
    question_type: QuestionType | None = None
    options: list[str] | None = None

    # omit a field to keep it; only hint and options may be cleared with null
    @field_validator("prompt", "question_type")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class QuestionDefinition(QuestionIn):
    """A question as it sits in a group's schema. `index` is 1-based and dense."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    index: int = Field(ge=1)


class QuestionsReplace(BaseModel):
    questions: list[QuestionIn]


class QuestionOut(BaseModel):
    id: str | None
    index: int
    prompt: str
    hint: str | None
    question_type: QuestionType
    options: list[str] | None


class GroupFormOut(BaseModel):
    """What a member sees before filling the form."""
    group_id: str
    cycle_number: int
    accepting_responses: bool
    already_submitted: bool
    questions: list[QuestionOut]
