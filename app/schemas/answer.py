from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Answer(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextAnswer(_Answer):
    type: Literal["TEXT"] = "TEXT"
    value: str


class ImageAnswer(_Answer):
    type: Literal["IMAGE"] = "IMAGE"
    value: str  # data:image/jpeg;base64,...
    quality: int | None = None


class DateAnswer(_Answer):
    type: Literal["DATE"] = "DATE"
    value: str | None = None


class TimeAnswer(_Answer):
    type: Literal["TIME"] = "TIME"
    value: str | None = None


class DropdownAnswer(_Answer):
    type: Literal["DROPDOWN"] = "DROPDOWN"
    value: str | None = None


class CheckboxAnswer(_Answer):
    type: Literal["CHECKBOX"] = "CHECKBOX"
    value: list[str] = Field(default_factory=list)


AnswerValue = Annotated[
    Union[TextAnswer, ImageAnswer, DateAnswer, TimeAnswer, DropdownAnswer, CheckboxAnswer],
    Field(discriminator="type"),
]

answer_adapter: TypeAdapter[AnswerValue] = TypeAdapter(AnswerValue)
