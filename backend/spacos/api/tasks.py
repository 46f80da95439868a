"""Task API routes."""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, case
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.db.base import get_db
from spacos.models.task import Task, TaskStatus, TaskPriority
from spacos.schemas.common import Page
from spacos.schemas.task import (
    TaskCreate, TaskUpdate, TaskResponse, TaskStatusRequest, AssignRequest,
    BulkTaskUpdate, WorkloadEntry, TaskStatistics,
)
from spacos.services.transitions import (
    TASK_TRANSITIONS, InvalidTransitionError, allowed_transitions, validate_transition,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = structlog.get_logger(__name__)

CLOSED_STATUSES = [TaskStatus.COMPLETED, TaskStatus.CANCELLED]

priority_rank = case(
    {
        TaskPriority.CRITICAL: 0,
        TaskPriority.HIGH: 1,
        TaskPriority.MEDIUM: 2,
        TaskPriority.LOW: 3,
    },
    value=Task.priority,
)


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.deleted_at.is_(None)).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _active(db: Session):
    return db.query(Task).filter(Task.deleted_at.is_(None))


def _ordered(q):
    return q.order_by(priority_rank, Task.due_date.asc().nullslast(), Task.id)


def _apply_status(task: Task, status: TaskStatus):
    if status == TaskStatus.COMPLETED:
        if task.status != TaskStatus.COMPLETED:
            task.completed_at = datetime.utcnow()
    else:
        task.completed_at = None
    task.status = status


@router.get("", response_model=Page[TaskResponse])
def list_tasks(
    spac_id: Optional[int] = None,
    target_id: Optional[int] = None,
    filing_id: Optional[int] = None,
    assignee_id: Optional[str] = None,
    status: Optional[list[TaskStatus]] = Query(None),
    priority: Optional[list[TaskPriority]] = Query(None),
    due_from: Optional[datetime] = None,
    due_to: Optional[datetime] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List tasks ordered by priority, then due date.

    - **search**: Match title or description
    """
    q = _active(db)

    if spac_id is not None:
        q = q.filter(Task.spac_id == spac_id)
    if target_id is not None:
        q = q.filter(Task.target_id == target_id)
    if filing_id is not None:
        q = q.filter(Task.filing_id == filing_id)
    if assignee_id:
        q = q.filter(Task.assignee_id == assignee_id)
    if status:
        q = q.filter(Task.status.in_(status))
    if priority:
        q = q.filter(Task.priority.in_(priority))
    if due_from:
        q = q.filter(Task.due_date >= due_from)
    if due_to:
        q = q.filter(Task.due_date <= due_to)
    if category:
        q = q.filter(Task.category == category)
    if search:
        term = f"%{search}%"
        q = q.filter(or_(Task.title.ilike(term), Task.description.ilike(term)))

    return paginate(_ordered(q), pagination)


@router.get("/my-tasks", response_model=list[TaskResponse])
def get_my_tasks(
    assignee_id: str,
    include_closed: bool = False,
    db: Session = Depends(get_db),
):
    """Tasks assigned to a user. Completed and cancelled tasks are hidden by default."""
    q = _active(db).filter(Task.assignee_id == assignee_id)
    if not include_closed:
        q = q.filter(Task.status.notin_(CLOSED_STATUSES))
    return _ordered(q).all()


@router.get("/overdue", response_model=list[TaskResponse])
def get_overdue_tasks(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = _active(db).filter(
        Task.due_date < datetime.utcnow(),
        Task.status.notin_(CLOSED_STATUSES),
    )
    if spac_id is not None:
        q = q.filter(Task.spac_id == spac_id)
    return q.order_by(Task.due_date.asc()).all()


@router.get("/due-soon", response_model=list[TaskResponse])
def get_tasks_due_soon(
    days: int = Query(7, ge=1, le=30),
    spac_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    now = datetime.utcnow()
    q = _active(db).filter(
        Task.due_date >= now,
        Task.due_date <= now + timedelta(days=days),
        Task.status.notin_(CLOSED_STATUSES),
    )
    if spac_id is not None:
        q = q.filter(Task.spac_id == spac_id)
    return q.order_by(Task.due_date.asc()).all()


@router.get("/workload", response_model=list[WorkloadEntry])
def get_workload(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Open tasks grouped by assignee, busiest first."""
    q = _active(db).filter(Task.status.notin_(CLOSED_STATUSES))
    if spac_id is not None:
        q = q.filter(Task.spac_id == spac_id)

    now = datetime.utcnow()
    groups: dict[Optional[str], WorkloadEntry] = {}
    for task in q.all():
        entry = groups.get(task.assignee_id)
        if entry is None:
            entry = groups[task.assignee_id] = WorkloadEntry(
                assignee_id=task.assignee_id, open_tasks=0, overdue=0, by_priority={},
            )
        entry.open_tasks += 1
        if task.due_date and task.due_date < now:
            entry.overdue += 1
        entry.by_priority[task.priority.value] = entry.by_priority.get(task.priority.value, 0) + 1

    return sorted(groups.values(), key=lambda e: (-e.open_tasks, e.assignee_id or ""))


@router.get("/statistics", response_model=TaskStatistics)
def get_task_statistics(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = _active(db)
    if spac_id is not None:
        q = q.filter(Task.spac_id == spac_id)
    tasks = q.all()

    now = datetime.utcnow()
    week_ago = now - timedelta(days=7)
    by_status: dict[str, int] = {s.value: 0 for s in TaskStatus}
    by_priority: dict[str, int] = {p.value: 0 for p in TaskPriority}
    overdue = 0
    completed_this_week = 0
    for task in tasks:
        by_status[task.status.value] += 1
        by_priority[task.priority.value] += 1
        if task.due_date and task.due_date < now and task.status not in CLOSED_STATUSES:
            overdue += 1
        if task.completed_at and task.completed_at >= week_ago:
            completed_this_week += 1

    return TaskStatistics(
        total=len(tasks),
        by_status=by_status,
        by_priority=by_priority,
        overdue=overdue,
        completed_this_week=completed_this_week,
    )


@router.post("/bulk-update")
def bulk_update_tasks(request: BulkTaskUpdate, db: Session = Depends(get_db)):
    """
    Apply status, priority or assignee to many tasks at once.

    Status changes here skip the transition table.
    """
    tasks = _active(db).filter(Task.id.in_(request.ids)).all()
    data = request.model_dump(exclude_unset=True, exclude={"ids"})

    for task in tasks:
        if data.get("status") is not None:
            _apply_status(task, data["status"])
        if data.get("priority") is not None:
            task.priority = data["priority"]
        if "assignee_id" in data:
            task.assignee_id = data["assignee_id"]
    db.commit()

    logger.info("task.bulk_updated", count=len(tasks), fields=sorted(data))
    return {"updated": len(tasks)}


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    return get_task_or_404(db, task_id)


@router.get("/{task_id}/transitions")
def get_task_transitions(task_id: int, db: Session = Depends(get_db)):
    task = get_task_or_404(db, task_id)
    return {
        "status": task.status.value,
        "allowed": allowed_transitions(TASK_TRANSITIONS, task.status),
    }


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(request: TaskCreate, db: Session = Depends(get_db)):
    task = Task(**request.model_dump())
    if task.status == TaskStatus.COMPLETED:
        task.completed_at = datetime.utcnow()
    db.add(task)
    db.commit()
    db.refresh(task)

    logger.info("task.created", task_id=task.id, spac_id=task.spac_id)
    return task


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, request: TaskUpdate, db: Session = Depends(get_db)):
    task = get_task_or_404(db, task_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(task, field, value)
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db)):
    task = get_task_or_404(db, task_id)
    task.deleted_at = datetime.utcnow()
    db.commit()

    logger.info("task.deleted", task_id=task_id)
    return {"status": "deleted", "task_id": task_id}


@router.post("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: int,
    request: TaskStatusRequest,
    db: Session = Depends(get_db),
):
    task = get_task_or_404(db, task_id)

    try:
        validate_transition(TASK_TRANSITIONS, task.status, request.status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    previous = task.status
    _apply_status(task, request.status)
    db.commit()
    db.refresh(task)

    logger.info("task.status_changed", task_id=task_id, from_status=previous.value, to_status=task.status.value)
    return task


@router.post("/{task_id}/assign", response_model=TaskResponse)
def assign_task(task_id: int, request: AssignRequest, db: Session = Depends(get_db)):
    task = get_task_or_404(db, task_id)
    task.assignee_id = request.assignee_id
    db.commit()
    db.refresh(task)
    return task
