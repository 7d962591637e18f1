from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_engine, require_member
from app.core.release_cycle import ReleaseCycleEngine
from app.core.security import get_current_member
from app.db.session import get_db
from app.models.newsletter import Newsletter
from app.models.release_cycle import ReleaseCycle
from app.schemas.newsletter import CompiledNewsletter, NewsletterOut
from app.schemas.pagination import PaginatedResponse, PaginationMeta
from app.schemas.release_cycle import CycleStatus, ReleaseCycleOut, ReminderTargets

router = APIRouter(prefix="/groups/{group_id}", tags=["release-cycles"])


def to_out(c: ReleaseCycle) -> ReleaseCycleOut:
    return ReleaseCycleOut(
        group_id=c.group_id,
        cycle_number=c.cycle_number,
        state=c.state,
        accepting_responses=c.accepting_responses,
        last_release_date=c.last_release_date,
        min_interval_days=c.min_interval_days,
        opened_at=c.opened_at,
        updated_at=c.updated_at,
    )


def newsletter_to_out(n: Newsletter) -> NewsletterOut:
    return NewsletterOut(
        id=str(n.id),
        group_id=n.group_id,
        cycle_number=n.cycle_number,
        content=CompiledNewsletter.model_validate(n.content),
        generated_at=n.generated_at,
    )


@router.get("/cycle", response_model=CycleStatus)
def get_cycle_status(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    _: str = Depends(get_current_member),
):
    """
    Where the group's questionnaire stands: state, release gate and completion.
    """
    return engine.status(group_id)


@router.post("/cycle/open", response_model=ReleaseCycleOut)
def open_cycle(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    """Release the questions for this cycle. Irreversible until the newsletter is generated."""
    return to_out(engine.open_for_responses(group_id, actor=member))


@router.post("/cycle/newsletter", response_model=NewsletterOut, status_code=status.HTTP_201_CREATED)
def generate_newsletter(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    member: str = Depends(require_member),
):
    return newsletter_to_out(engine.generate_newsletter(group_id, actor=member))


@router.get("/cycle/reminders", response_model=ReminderTargets)
def get_reminder_targets(
    group_id: str,
    engine: ReleaseCycleEngine = Depends(get_engine),
    _: str = Depends(get_current_member),
):
    """Members who still owe a response; delivery is up to the caller."""
    cycle = engine.get_cycle(group_id)
    return ReminderTargets(
        group_id=group_id,
        cycle_number=cycle.cycle_number,
        responder_ids=engine.reminder_targets(group_id),
    )


@router.get("/newsletters")
def list_newsletters(
    group_id: str,
    limit: int = Query(default=20, ge=1, le=100, description="Maximum number of results"),
    offset: int = Query(default=0, ge=0, description="Number of results to skip"),
    include_pagination: bool = Query(default=False, description="Include pagination metadata"),
    db: Session = Depends(get_db),
    _: str = Depends(get_current_member),
):
    query = db.query(Newsletter).filter(Newsletter.group_id == group_id)

    total = query.count()

    rows = query.order_by(Newsletter.cycle_number.desc()).offset(offset).limit(limit).all()
    items = [newsletter_to_out(n) for n in rows]

    if include_pagination:
        return PaginatedResponse(
            items=items,
            pagination=PaginationMeta.for_page(
                total=total, limit=limit, offset=offset, returned=len(items)
            ),
        )
    return items
