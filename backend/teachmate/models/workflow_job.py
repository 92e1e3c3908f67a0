"""Background workflow job record, polled by clients for completion."""

import json
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Text

from teachmate.clock import utcnow
from teachmate.database import Base

JOB_STATUSES = ("pending", "running", "succeeded", "failed")


class WorkflowJob(Base):
    __tablename__ = "workflow_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind = Column(String(50), nullable=False)  # curation | chapter_assessment | full_workflow | grading
    lesson_plan_id = Column(String(36), ForeignKey("lesson_plans.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="pending")
    result_json = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)

    @property
    def result(self):
        return json.loads(self.result_json) if self.result_json else None
