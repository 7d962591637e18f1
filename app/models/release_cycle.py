import uuid
from datetime import datetime, date

from sqlalchemy import Boolean, String, Date, DateTime, Integer, CheckConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONType, utcnow


class ReleaseCycle(Base):
    __tablename__ = "release_cycles"
    __table_args__ = (
        CheckConstraint(
            "state IN ('CLOSED','OPEN','COLLECTED')",
            name="ck_release_cycles_state",
        ),
        # accepting_responses <=> OPEN
        CheckConstraint(
            "(state = 'OPEN' AND accepting_responses) OR (state <> 'OPEN' AND NOT accepting_responses)",
            name="ck_release_cycles_accepting",
        ),
        CheckConstraint("min_interval_days >= 0", name="ck_release_cycles_interval"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # exactly one cycle record per group
    group_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # bumped on every open; responses and newsletters are keyed by it
    cycle_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    state: Mapped[str] = mapped_column(String(20), nullable=False, default="CLOSED")
    accepting_responses: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    last_release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    min_interval_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    # membership snapshot taken at open, in membership order
    expected_responder_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
