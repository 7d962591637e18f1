from app.models.audit_event import AuditEvent
from app.models.group_member import GroupMember
from app.models.newsletter import Newsletter
from app.models.question import Question
from app.models.question_response import QuestionResponse
from app.models.release_cycle import ReleaseCycle

__all__ = [ "AuditEvent", "GroupMember", "Newsletter",
           "Question", "QuestionResponse", "ReleaseCycle" ]
