"""SQLAlchemy ORM models."""

from teachmate.models.grade import Grade
from teachmate.models.class_ import SchoolClass
from teachmate.models.subject import Subject
from teachmate.models.chapter import Chapter
from teachmate.models.teacher import Teacher
from teachmate.models.student import Student
from teachmate.models.parent import Parent
from teachmate.models.lesson_plan import LessonPlan, LessonSession
from teachmate.models.assessment import Assessment, AssessmentQuestions
from teachmate.models.submission import Submission
from teachmate.models.chat_conversation import ChatConversation
from teachmate.models.voice_call import VoiceCall
from teachmate.models.workflow_job import WorkflowJob

__all__ = [
    "Grade",
    "SchoolClass",
    "Subject",
    "Chapter",
    "Teacher",
    "Student",
    "Parent",
    "LessonPlan",
    "LessonSession",
    "Assessment",
    "AssessmentQuestions",
    "Submission",
    "ChatConversation",
    "VoiceCall",
    "WorkflowJob",
]
