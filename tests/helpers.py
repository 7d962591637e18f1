import base64
import io
import random
from datetime import date

from PIL import Image
from sqlalchemy.orm import Session

from app.core.answer_codec import AnswerCodec
from app.core.collaborators import DigestNewsletterCompiler, SqlMembershipProvider
from app.core.question_schema import QuestionSchema, save_schema
from app.core.release_cycle import ReleaseCycleEngine
from app.models.group_member import GroupMember
from app.models.release_cycle import ReleaseCycle
from app.schemas.question import QuestionDefinition, QuestionType


def add_member(db: Session, group_id: str, responder_id: str) -> GroupMember:
    m = GroupMember(group_id=group_id, responder_id=responder_id)
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


def add_members(db: Session, group_id: str, *responder_ids: str) -> list[GroupMember]:
    return [add_member(db, group_id, r) for r in responder_ids]


def question(index: int, question_type: QuestionType, options: list[str] | None = None,
             prompt: str | None = None) -> QuestionDefinition:
    return QuestionDefinition(
        index=index,
        prompt=prompt or f"Question {index}",
        question_type=question_type,
        options=options,
    )


def create_questions(db: Session, group_id: str, questions: list[QuestionDefinition]) -> QuestionSchema:
    schema = QuestionSchema(questions)
    save_schema(db, group_id, schema)
    db.commit()
    return schema


def set_last_release(db: Session, group_id: str, last_release_date: date) -> ReleaseCycle:
    cycle = db.query(ReleaseCycle).filter(ReleaseCycle.group_id == group_id).one()
    cycle.last_release_date = last_release_date
    db.commit()
    db.refresh(cycle)
    return cycle


def make_engine(db: Session, *, today: date | None = None, compiler=None, membership=None,
                min_interval_days: int = 30) -> ReleaseCycleEngine:
    return ReleaseCycleEngine(
        db,
        membership or SqlMembershipProvider(db),
        compiler or DigestNewsletterCompiler(AnswerCodec()),
        clock=(lambda: today) if today else date.today,
        min_interval_days=min_interval_days,
    )


def make_image_bytes(width: int = 1600, height: int = 1200, fmt: str = "PNG",
                     mode: str = "RGB", noisy: bool = False) -> bytes:
    if noisy:
        rnd = random.Random(42)
        img = Image.frombytes(mode, (width, height), rnd.randbytes(width * height * len(mode)))
    else:
        color = {"RGB": (200, 120, 40), "RGBA": (200, 120, 40, 128), "L": 128}[mode]
        img = Image.new(mode, (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
