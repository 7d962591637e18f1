import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType, utcnow


class QuestionResponse(Base):
    __tablename__ = "question_responses"
    __table_args__ = (
        # one response per responder per cycle; also the compare-and-set for submissions
        UniqueConstraint("group_id", "cycle_number", "responder_id", name="uq_response_cycle_responder"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    group_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    cycle_number: Mapped[int] = mapped_column(Integer, nullable=False)
    responder_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # ordered list of tagged answers, one per question
    answers: Mapped[list] = mapped_column(JSONType, nullable=False)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
