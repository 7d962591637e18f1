from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, utcnow


class GroupMember(Base):
    """Read-only mirror of group membership; rows are managed by the groups service."""

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "responder_id", name="uq_group_member"),
    )

    # autoincrement id doubles as membership order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    group_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    responder_id: Mapped[str] = mapped_column(String(255), nullable=False)

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
