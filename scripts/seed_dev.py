# seed_dev.py
from sqlalchemy.orm import Session

from app.core.answer_codec import AnswerCodec
from app.core.collaborators import DigestNewsletterCompiler, SqlMembershipProvider
from app.core.config import settings
from app.core.release_cycle import ReleaseCycleEngine
from app.db.session import SessionLocal
from app.models.group_member import GroupMember
from app.schemas.question import QuestionIn, QuestionType

GROUP_ID = "demo-group"

MEMBERS = [
    "owner@local.test",
    "alice@local.test",
    "bob@local.test",
]

QUESTIONS = [
    QuestionIn(prompt="What did you do this month?", question_type=QuestionType.TEXT),
    QuestionIn(prompt="Share a photo", hint="Anything goes", question_type=QuestionType.IMAGE),
    QuestionIn(prompt="Best day of the month", question_type=QuestionType.DATE),
    QuestionIn(
        prompt="How was the month?",
        question_type=QuestionType.DROPDOWN,
        options=["Great", "Fine", "Rough"],
    ),
    QuestionIn(
        prompt="What kept you busy?",
        question_type=QuestionType.CHECKBOX,
        options=["Work", "Family", "Travel", "Hobbies"],
    ),
]


def get_or_create_member(db: Session, group_id: str, responder_id: str) -> GroupMember:
    m = (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.responder_id == responder_id)
        .one_or_none()
    )
    if m:
        return m
    m = GroupMember(group_id=group_id, responder_id=responder_id)
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


def main():
    db = SessionLocal()
    try:
        for email in MEMBERS:
            get_or_create_member(db, GROUP_ID, email)

        engine = ReleaseCycleEngine(
            db,
            SqlMembershipProvider(db),
            DigestNewsletterCompiler(AnswerCodec()),
            min_interval_days=settings.MIN_RELEASE_INTERVAL_DAYS,
        )

        schema = engine.schema(GROUP_ID)
        if schema.locked:
            print(f"Questions for {GROUP_ID} are released; leaving them as they are.")
        else:
            _, schema = engine.edit_schema(
                GROUP_ID, lambda s: s.replace_all(QUESTIONS), actor=MEMBERS[0]
            )

        print("\n=== DEV SEED COMPLETE ===")
        print(f"Group: {GROUP_ID}")
        print("Members:")
        for email in MEMBERS:
            print(f"  {email}")

        print("\nQuestions:")
        for q in schema:
            print(f"  {q.index}. {q.prompt} ({q.question_type.value})")

        print("\nNext API steps:")
        print(f"  POST /groups/{GROUP_ID}/cycle/open        (X-User-Email: {MEMBERS[0]})")
        print(f"  POST /groups/{GROUP_ID}/responses         (as each member)")
        print(f"  POST /groups/{GROUP_ID}/cycle/newsletter  (X-User-Email: {MEMBERS[0]})")

    finally:
        db.close()


if __name__ == "__main__":
    main()
