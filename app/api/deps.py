from datetime import date
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.answer_codec import AnswerCodec, ImageBudget
from app.core.collaborators import DigestNewsletterCompiler, SqlMembershipProvider
from app.core.config import settings
from app.core.errors import NotAMemberError
from app.core.release_cycle import ReleaseCycleEngine
from app.core.security import get_current_member
from app.db.session import get_db


def get_codec() -> AnswerCodec:
    return AnswerCodec(ImageBudget.from_settings(settings))


def get_clock() -> Callable[[], date]:
    return date.today


def get_membership_provider(db: Session = Depends(get_db)) -> SqlMembershipProvider:
    return SqlMembershipProvider(db)


def get_newsletter_compiler(codec: AnswerCodec = Depends(get_codec)) -> DigestNewsletterCompiler:
    return DigestNewsletterCompiler(codec)


def get_engine(
    db: Session = Depends(get_db),
    membership: SqlMembershipProvider = Depends(get_membership_provider),
    compiler: DigestNewsletterCompiler = Depends(get_newsletter_compiler),
    clock: Callable[[], date] = Depends(get_clock),
) -> ReleaseCycleEngine:
    return ReleaseCycleEngine(
        db,
        membership,
        compiler,
        clock=clock,
        min_interval_days=settings.MIN_RELEASE_INTERVAL_DAYS,
    )


def require_member(
    group_id: str,
    membership: SqlMembershipProvider = Depends(get_membership_provider),
    member: str = Depends(get_current_member),
) -> str:
    """Caller identity, provided they currently belong to the group in the path."""
    if member not in membership.list_members(group_id):
        raise NotAMemberError()
    return member
