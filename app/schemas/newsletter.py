from datetime import datetime
from pydantic import BaseModel

from app.schemas.question import QuestionType


class NewsletterEntry(BaseModel):
    responder_id: str
    value: str | list[str] | None


class NewsletterSection(BaseModel):
    question_index: int
    prompt: str
    question_type: QuestionType
    entries: list[NewsletterEntry]


class CompiledNewsletter(BaseModel):
    group_id: str
    cycle_number: int
    title: str
    response_count: int
    sections: list[NewsletterSection]


class NewsletterOut(BaseModel):
    id: str
    group_id: str
    cycle_number: int
    content: CompiledNewsletter
    generated_at: datetime
