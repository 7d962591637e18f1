import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType, utcnow


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("group_id", "question_index", name="uq_questions_group_index"),
        CheckConstraint(
            "question_type IN ('TEXT','IMAGE','DATE','TIME','CHECKBOX','DROPDOWN')",
            name="ck_questions_type",
        ),
        CheckConstraint("question_index >= 1", name="ck_questions_index_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    group_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # 1-based, dense; position of the answer in every response
    question_index: Mapped[int] = mapped_column(Integer, nullable=False)

    prompt: Mapped[str] = mapped_column(String(500), nullable=False)
    hint: Mapped[str | None] = mapped_column(String(500), nullable=True)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    options: Mapped[list | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
