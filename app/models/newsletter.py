import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType, utcnow


class Newsletter(Base):
    __tablename__ = "newsletters"
    __table_args__ = (
        UniqueConstraint("group_id", "cycle_number", name="uq_newsletter_cycle"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    group_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    cycle_number: Mapped[int] = mapped_column(Integer, nullable=False)

    content: Mapped[dict] = mapped_column(JSONType, nullable=False)

    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
