from datetime import date, datetime
from pydantic import BaseModel


class ReleaseCycleOut(BaseModel):
    group_id: str
    cycle_number: int
    state: str
    accepting_responses: bool
    last_release_date: date | None
    min_interval_days: int
    opened_at: datetime | None = None
    updated_at: datetime


class CycleStatus(BaseModel):
    """Snapshot of a group's release cycle, for the manage-group screen"""
    group_id: str
    cycle_number: int
    state: str
    accepting_responses: bool
    last_release_date: date | None
    release_date: date | None  # earliest day a newsletter may be generated
    days_until_release: int
    can_generate: bool
    expected_responders: int
    received_responders: int
    completion_ratio: float
    outstanding_responders: list[str]


class ReminderTargets(BaseModel):
    group_id: str
    cycle_number: int
    responder_ids: list[str]
