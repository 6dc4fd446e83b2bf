# worktrack/models/event_log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from datetime import datetime
from worktrack.database import Base
import enum


class LogType(str, enum.Enum):
    TASK_CREATED = "task_created"
    TASK_COMPLETED = "task_completed"
    TASK_REVERTED = "task_reverted"
    TASK_DELETED = "task_deleted"
    TASK_MODIFIED = "task_modified"
    TASK_COMMENT = "task_comment"
    TASK_ASSIGNED = "task_assigned"
    TASK_ARCHIVED = "task_archived"
    TASK_RESTORED = "task_restored"
    TASK_WORK_ADDED = "task_work_added"


class EventLog(Base):
    """Audit trail entry; for work logs it mirrors the log's type and start time"""

    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    event_type = Column(Enum(LogType), nullable=True)

    # Polymorphic target, e.g. ("WorkLog", 12)
    target_type = Column(String(50), nullable=True)
    target_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<EventLog(id={self.id}, event_type='{self.event_type}', target={self.target_type}#{self.target_id})>"
