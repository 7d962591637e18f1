"""questionnaire and release cycles

Revision ID: 3f1c2b7a9d10
Revises:
Create Date: 2026-10-19 09:12:40.118204
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "3f1c2b7a9d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("responder_id", sa.String(255), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("group_id", "responder_id", name="uq_group_member"),
    )
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("question_index", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.String(500), nullable=False),
        sa.Column("hint", sa.String(500), nullable=True),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("options", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("group_id", "question_index", name="uq_questions_group_index"),
        sa.CheckConstraint(
            "question_type IN ('TEXT','IMAGE','DATE','TIME','CHECKBOX','DROPDOWN')",
            name="ck_questions_type",
        ),
        sa.CheckConstraint("question_index >= 1", name="ck_questions_index_positive"),
    )
    op.create_index("ix_questions_group_id", "questions", ["group_id"])

    op.create_table(
        "release_cycles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False, unique=True),
        sa.Column("cycle_number", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(20), nullable=False),
        sa.Column("accepting_responses", sa.Boolean(), nullable=False),
        sa.Column("last_release_date", sa.Date(), nullable=True),
        sa.Column("min_interval_days", sa.Integer(), nullable=False),
        sa.Column("expected_responder_ids", JSONType, nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("state IN ('CLOSED','OPEN','COLLECTED')", name="ck_release_cycles_state"),
        sa.CheckConstraint(
            "(state = 'OPEN' AND accepting_responses) OR (state <> 'OPEN' AND NOT accepting_responses)",
            name="ck_release_cycles_accepting",
        ),
        sa.CheckConstraint("min_interval_days >= 0", name="ck_release_cycles_interval"),
    )

    op.create_table(
        "question_responses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("cycle_number", sa.Integer(), nullable=False),
        sa.Column("responder_id", sa.String(255), nullable=False),
        sa.Column("answers", JSONType, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "group_id", "cycle_number", "responder_id", name="uq_response_cycle_responder"
        ),
    )
    op.create_index("ix_question_responses_group_id", "question_responses", ["group_id"])

    op.create_table(
        "newsletters",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("cycle_number", sa.Integer(), nullable=False),
        sa.Column("content", JSONType, nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("group_id", "cycle_number", name="uq_newsletter_cycle"),
    )
    op.create_index("ix_newsletters_group_id", "newsletters", ["group_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.String(255), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("event_metadata", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_entity", "audit_events", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_entity", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_newsletters_group_id", table_name="newsletters")
    op.drop_table("newsletters")
    op.drop_index("ix_question_responses_group_id", table_name="question_responses")
    op.drop_table("question_responses")
    op.drop_table("release_cycles")
    op.drop_index("ix_questions_group_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_group_members_group_id", table_name="group_members")
    op.drop_table("group_members")
