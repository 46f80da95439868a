"""Task model for deal workflow tracking."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from spacos.db.base import Base, JSONType


class TaskStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    spac_id = Column(Integer, ForeignKey("spacs.id"), index=True)
    target_id = Column(Integer, ForeignKey("targets.id"), index=True)
    filing_id = Column(Integer, ForeignKey("filings.id"), index=True)
    assignee_id = Column(String(100), index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.NOT_STARTED, nullable=False)
    priority = Column(SQLEnum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False)
    category = Column(String(100))  # e.g. "due_diligence", "filing", "legal"
    due_date = Column(DateTime)
    completed_at = Column(DateTime)
    tags = Column(JSONType)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime)

    spac = relationship("Spac", back_populates="tasks")
    target = relationship("Target", back_populates="tasks")
    filing = relationship("Filing", back_populates="tasks")

    __table_args__ = (
        Index("ix_tasks_status_due", "status", "due_date"),
    )
