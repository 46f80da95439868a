"""Pydantic schemas for Task API."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from spacos.models.task import TaskStatus, TaskPriority


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    spac_id: Optional[int] = None
    target_id: Optional[int] = None
    filing_id: Optional[int] = None
    assignee_id: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: list[str] = []


class TaskCreate(TaskBase):
    status: TaskStatus = TaskStatus.NOT_STARTED


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    spac_id: Optional[int] = None
    target_id: Optional[int] = None
    filing_id: Optional[int] = None
    priority: Optional[TaskPriority] = None
    category: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: Optional[list[str]] = None


class TaskResponse(TaskBase):
    id: int
    status: TaskStatus
    completed_at: Optional[datetime] = None
    tags: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskStatusRequest(BaseModel):
    status: TaskStatus


class AssignRequest(BaseModel):
    assignee_id: Optional[str] = None


class BulkTaskUpdate(BaseModel):
    ids: list[int] = Field(..., min_length=1)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None


class WorkloadEntry(BaseModel):
    assignee_id: Optional[str] = None
    open_tasks: int
    overdue: int
    by_priority: dict[str, int]


class TaskStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    overdue: int
    completed_this_week: int
