from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterator, Sequence, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.audit import log_event
from app.core.collaborators import MembershipProvider, NewsletterCompiler
from app.core.errors import (
    AlreadyClosedError,
    AlreadyOpenError,
    CollaboratorError,
    DuplicateSubmissionError,
    NewsletterError,
    NotAMemberError,
    TooSoonError,
    ValidationError,
)
from app.core.group_locks import GroupLockRegistry, group_locks
from app.core.question_schema import QuestionSchema, load_schema, save_schema
from app.core.response_collector import ResponseCollector
from app.core.response_validation import has_errors, validate_response
from app.db.base import utcnow
from app.models.newsletter import Newsletter
from app.models.question_response import QuestionResponse
from app.models.release_cycle import ReleaseCycle
from app.schemas.answer import AnswerValue
from app.schemas.release_cycle import CycleStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CycleState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    COLLECTED = "COLLECTED"


def release_date_for(last_release_date: date | None, min_interval_days: int) -> date | None:
    if last_release_date is None:
        return None
    return last_release_date + timedelta(days=min_interval_days)


def days_until_release(last_release_date: date | None, min_interval_days: int, today: date) -> int:
    """Whole days left before the release gate opens; 0 means a newsletter may be generated today."""
    release_date = release_date_for(last_release_date, min_interval_days)
    if release_date is None:
        return 0
    return max(0, (release_date - today).days)


class ReleaseCycleEngine:
    """
    Questionnaire lifecycle of a group: CLOSED -> OPEN -> (COLLECTED) -> CLOSED.

    Every transition runs under the group's lock and the cycle row lock, and either
    commits completely or rolls back; rejected operations never leave partial state.
    """

    def __init__(
        self,
        db: Session,
        membership: MembershipProvider,
        compiler: NewsletterCompiler,
        *,
        clock: Callable[[], date] = date.today,
        min_interval_days: int = 30,
        locks: GroupLockRegistry = group_locks,
    ):
        self.db = db
        self.membership = membership
        self.compiler = compiler
        self.clock = clock
        self.min_interval_days = min_interval_days
        self.locks = locks

    # ---------- plumbing ----------

    @contextmanager
    def _transaction(self, group_id: str) -> Iterator[None]:
        with self.locks.hold(group_id):
            try:
                yield
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

    def _new_cycle(self, group_id: str) -> ReleaseCycle:
        return ReleaseCycle(
            group_id=group_id,
            cycle_number=0,
            state=CycleState.CLOSED.value,
            accepting_responses=False,
            min_interval_days=self.min_interval_days,
            expected_responder_ids=[],
        )

    def _lock_cycle(self, group_id: str) -> ReleaseCycle:
        cycle = (
            self.db.query(ReleaseCycle)
            .filter(ReleaseCycle.group_id == group_id)
            .with_for_update()
            .one_or_none()
        )
        if cycle:
            return cycle

        try:
            with self.db.begin_nested():
                cycle = self._new_cycle(group_id)
                self.db.add(cycle)
                self.db.flush()
        except IntegrityError:
            # another process created it first
            cycle = (
                self.db.query(ReleaseCycle)
                .filter(ReleaseCycle.group_id == group_id)
                .with_for_update()
                .one()
            )
        return cycle

    def get_cycle(self, group_id: str) -> ReleaseCycle:
        """Current cycle record; an unsaved CLOSED cycle for groups that never released."""
        cycle = (
            self.db.query(ReleaseCycle)
            .filter(ReleaseCycle.group_id == group_id)
            .one_or_none()
        )
        return cycle or self._new_cycle(group_id)

    def _members(self, group_id: str) -> list[str]:
        try:
            return list(self.membership.list_members(group_id))
        except NewsletterError:
            raise
        except Exception as exc:
            logger.exception("membership lookup failed for group %s", group_id)
            raise CollaboratorError("Group members could not be loaded, try again later") from exc

    def _responses(self, cycle: ReleaseCycle) -> list[QuestionResponse]:
        if cycle.cycle_number == 0:
            return []
        return (
            self.db.query(QuestionResponse)
            .filter(
                QuestionResponse.group_id == cycle.group_id,
                QuestionResponse.cycle_number == cycle.cycle_number,
            )
            .order_by(QuestionResponse.submitted_at)
            .all()
        )

    def collector(self, cycle: ReleaseCycle) -> ResponseCollector:
        received = [r.responder_id for r in self._responses(cycle)]
        return ResponseCollector(cycle.expected_responder_ids or [], received)

    # ---------- schema ----------

    def schema(self, group_id: str) -> QuestionSchema:
        cycle = self.get_cycle(group_id)
        return load_schema(self.db, group_id, locked=cycle.state != CycleState.CLOSED.value)

    def edit_schema(
        self,
        group_id: str,
        mutate: Callable[[QuestionSchema], T],
        *,
        actor: str | None = None,
    ) -> tuple[T, QuestionSchema]:
        """Apply `mutate` to the group's schema and persist it; raises SchemaLockedError unless CLOSED."""
        with self._transaction(group_id):
            cycle = self._lock_cycle(group_id)
            schema = load_schema(self.db, group_id, locked=cycle.state != CycleState.CLOSED.value)
            result = mutate(schema)
            save_schema(self.db, group_id, schema)

            log_event(
                db=self.db,
                actor=actor,
                action="SCHEMA_UPDATED",
                entity_type="release_cycle",
                entity_id=group_id,
                metadata={"question_count": schema.question_count()},
            )
        return result, schema

    # ---------- transitions ----------

    def open_for_responses(self, group_id: str, *, actor: str | None = None) -> ReleaseCycle:
        with self._transaction(group_id):
            cycle = self._lock_cycle(group_id)
            if cycle.state != CycleState.CLOSED.value:
                raise AlreadyOpenError()

            members = list(dict.fromkeys(self._members(group_id)))

            prev = cycle.state
            cycle.cycle_number += 1
            cycle.state = CycleState.OPEN.value
            cycle.accepting_responses = True
            cycle.expected_responder_ids = members
            cycle.opened_at = utcnow()
            self.db.flush()

            log_event(
                db=self.db,
                actor=actor,
                action="CYCLE_OPENED",
                entity_type="release_cycle",
                entity_id=group_id,
                metadata={
                    "from": prev,
                    "to": cycle.state,
                    "cycle_number": cycle.cycle_number,
                    "expected_responders": len(members),
                },
            )

        logger.info(
            "group %s opened cycle %d for %d members",
            group_id, cycle.cycle_number, len(members),
        )
        return cycle

    def accept_submission(
        self,
        group_id: str,
        responder_id: str,
        answers: Sequence[AnswerValue | None],
    ) -> QuestionResponse:
        with self._transaction(group_id):
            cycle = self._lock_cycle(group_id)
            if cycle.state != CycleState.OPEN.value or not cycle.accepting_responses:
                raise AlreadyClosedError(
                    "Sorry, this form is closed now. Please check back later."
                )

            if responder_id not in self._members(group_id):
                raise NotAMemberError()

            collector = self.collector(cycle)
            if collector.has_responded(responder_id):
                raise DuplicateSubmissionError()

            schema = load_schema(self.db, group_id, locked=True)
            errors = validate_response(schema, answers)
            if len(answers) > schema.question_count():
                raise ValidationError(
                    errors,
                    message=f"Expected {schema.question_count()} answers, got {len(answers)}",
                )
            if has_errors(errors):
                raise ValidationError(errors)

            row = QuestionResponse(
                group_id=group_id,
                cycle_number=cycle.cycle_number,
                responder_id=responder_id,
                answers=[a.model_dump(mode="json") for a in answers],
                submitted_at=utcnow(),
            )
            try:
                with self.db.begin_nested():
                    self.db.add(row)
                    self.db.flush()
            except IntegrityError as exc:
                # lost the race against a concurrent submission by the same responder
                raise DuplicateSubmissionError() from exc

            collector.record_response(responder_id)

            log_event(
                db=self.db,
                actor=responder_id,
                action="RESPONSE_SUBMITTED",
                entity_type="release_cycle",
                entity_id=group_id,
                metadata={"cycle_number": cycle.cycle_number},
            )

            if collector.is_complete:
                cycle.state = CycleState.COLLECTED.value
                cycle.accepting_responses = False
                log_event(
                    db=self.db,
                    actor=None,
                    action="CYCLE_COLLECTED",
                    entity_type="release_cycle",
                    entity_id=group_id,
                    metadata={
                        "from": CycleState.OPEN.value,
                        "to": cycle.state,
                        "cycle_number": cycle.cycle_number,
                    },
                )
            self.db.flush()

        logger.info(
            "group %s cycle %d: response from %s (%d/%d)",
            group_id, cycle.cycle_number, responder_id,
            collector.received_expected_count(), len(collector.expected),
        )
        return row

    def generate_newsletter(self, group_id: str, *, actor: str | None = None) -> Newsletter:
        with self._transaction(group_id):
            cycle = self._lock_cycle(group_id)
            if cycle.state == CycleState.CLOSED.value:
                raise AlreadyClosedError(
                    "Questions must be released before a newsletter can be generated"
                )

            today = self.clock()
            days_left = days_until_release(cycle.last_release_date, cycle.min_interval_days, today)
            if days_left > 0:
                raise TooSoonError(
                    release_date_for(cycle.last_release_date, cycle.min_interval_days),
                    days_left,
                )

            schema = load_schema(self.db, group_id, locked=True)
            responses = self._responses(cycle)
            try:
                compiled = self.compiler.compile(group_id, cycle.cycle_number, schema, responses)
            except NewsletterError:
                raise
            except Exception as exc:
                logger.exception("newsletter compile failed for group %s", group_id)
                raise CollaboratorError() from exc

            newsletter = Newsletter(
                group_id=group_id,
                cycle_number=cycle.cycle_number,
                content=compiled.model_dump(mode="json"),
                generated_at=utcnow(),
            )
            self.db.add(newsletter)

            prev = cycle.state
            cycle.state = CycleState.CLOSED.value
            cycle.accepting_responses = False
            cycle.last_release_date = today
            self.db.flush()

            log_event(
                db=self.db,
                actor=actor,
                action="NEWSLETTER_GENERATED",
                entity_type="release_cycle",
                entity_id=group_id,
                metadata={
                    "from": prev,
                    "to": cycle.state,
                    "cycle_number": cycle.cycle_number,
                    "responses": len(responses),
                    "release_date": today.isoformat(),
                },
            )

        logger.info(
            "group %s generated newsletter for cycle %d from %d responses",
            group_id, cycle.cycle_number, len(responses),
        )
        return newsletter

    # ---------- views ----------

    def has_submitted(self, group_id: str, responder_id: str) -> bool:
        cycle = self.get_cycle(group_id)
        if cycle.state == CycleState.CLOSED.value:
            return False
        return self.collector(cycle).has_responded(responder_id)

    def status(self, group_id: str) -> CycleStatus:
        cycle = self.get_cycle(group_id)
        today = self.clock()
        days_left = days_until_release(cycle.last_release_date, cycle.min_interval_days, today)

        closed = cycle.state == CycleState.CLOSED.value
        collector = ResponseCollector([]) if closed else self.collector(cycle)

        return CycleStatus(
            group_id=group_id,
            cycle_number=cycle.cycle_number,
            state=cycle.state,
            accepting_responses=cycle.accepting_responses,
            last_release_date=cycle.last_release_date,
            release_date=release_date_for(cycle.last_release_date, cycle.min_interval_days),
            days_until_release=days_left,
            can_generate=not closed and days_left == 0,
            expected_responders=len(collector.expected),
            received_responders=collector.received_expected_count(),
            completion_ratio=0.0 if closed else round(collector.completion_ratio(), 4),
            outstanding_responders=collector.outstanding_responders(),
        )

    def reminder_targets(self, group_id: str) -> list[str]:
        """Members still expected to answer; empty unless responses are being collected."""
        cycle = self.get_cycle(group_id)
        if cycle.state != CycleState.OPEN.value:
            return []
        return self.collector(cycle).outstanding_responders()
