from __future__ import annotations

from typing import Protocol, Sequence

from sqlalchemy.orm import Session

from app.core.answer_codec import AnswerCodec
from app.models.group_member import GroupMember
from app.models.question_response import QuestionResponse
from app.schemas.answer import answer_adapter
from app.schemas.newsletter import (
    CompiledNewsletter,
    NewsletterEntry,
    NewsletterSection,
)


class MembershipProvider(Protocol):
    def list_members(self, group_id: str) -> list[str]:
        """Responder ids of the group's current members, in membership order."""
        ...


class NewsletterCompiler(Protocol):
    def compile(
        self,
        group_id: str,
        cycle_number: int,
        schema,
        responses: Sequence[QuestionResponse],
    ) -> CompiledNewsletter:
        ...


class SqlMembershipProvider:
    def __init__(self, db: Session):
        self.db = db

    def list_members(self, group_id: str) -> list[str]:
        rows = (
            self.db.query(GroupMember.responder_id)
            .filter(GroupMember.group_id == group_id)
            .order_by(GroupMember.id)
            .all()
        )
        return [r.responder_id for r in rows]


class DigestNewsletterCompiler:
    """Groups every answer under its question, in schema order then submission order."""

    def __init__(self, codec: AnswerCodec | None = None):
        self.codec = codec or AnswerCodec()

    def compile(self, group_id, cycle_number, schema, responses) -> CompiledNewsletter:
        ordered = sorted(responses, key=lambda r: (r.submitted_at, r.responder_id))
        sections: list[NewsletterSection] = []

        for question in schema:
            pos = question.index - 1
            entries = []
            for r in ordered:
                if pos >= len(r.answers):
                    continue
                answer = answer_adapter.validate_python(r.answers[pos])
                entries.append(
                    NewsletterEntry(responder_id=r.responder_id, value=self.codec.decode(answer))
                )
            sections.append(
                NewsletterSection(
                    question_index=question.index,
                    prompt=question.prompt,
                    question_type=question.question_type,
                    entries=entries,
                )
            )

        return CompiledNewsletter(
            group_id=group_id,
            cycle_number=cycle_number,
            title=f"Newsletter #{cycle_number}",
            response_count=len(ordered),
            sections=sections,
        )
