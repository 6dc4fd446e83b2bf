# worktrack/models/ical_entry.py
from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from worktrack.database import Base


class IcalEntry(Base):
    """Cached calendar rendering of a work log, dropped whenever the log changes"""

    __tablename__ = "ical_entries"

    id = Column(Integer, primary_key=True, index=True)
    work_log_id = Column(Integer, ForeignKey("work_logs.id"), nullable=False, unique=True)
    body = Column(Text, nullable=True)

    work_log = relationship("WorkLog", back_populates="ical_entry")
