"""
Compliance API routes.

Checklist items, board meetings with resolutions, the conflict-of-interest
log and insider trading windows, all scoped to a SPAC.
"""
from typing import Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.api.spacs import get_spac_or_404
from spacos.db.base import get_db
from spacos.models.compliance import (
    ComplianceItem, ComplianceStatus, OPEN_COMPLIANCE_STATUSES,
    BoardMeeting, BoardMeetingStatus,
    Conflict, ConflictSeverity,
    InsiderTradingWindow, TradingWindowStatus,
)
from spacos.schemas.common import Page
from spacos.schemas.compliance import (
    ComplianceItemCreate, ComplianceItemUpdate, ComplianceItemResponse, ComplianceStatusRequest,
    ComplianceStatistics,
    BoardMeetingCreate, BoardMeetingUpdate, BoardMeetingResponse, BoardMeetingStatusRequest, Resolution,
    ConflictCreate, ConflictUpdate, ConflictResponse, ConflictResolveRequest,
    TradingWindowCreate, TradingWindowUpdate, TradingWindowResponse, CloseWindowRequest, CanTradeResponse,
)

router = APIRouter(prefix="/compliance", tags=["compliance"])
logger = structlog.get_logger(__name__)

SEVERITY_RANK = {
    ConflictSeverity.CRITICAL: 0,
    ConflictSeverity.HIGH: 1,
    ConflictSeverity.MEDIUM: 2,
    ConflictSeverity.LOW: 3,
}


def _get_or_404(db: Session, model, record_id: int, label: str):
    record = db.query(model).filter(model.id == record_id).first()
    if not record:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


# --- Checklist items ---

@router.get("/items", response_model=Page[ComplianceItemResponse])
def list_compliance_items(
    spac_id: Optional[int] = None,
    status: Optional[list[ComplianceStatus]] = Query(None),
    category: Optional[str] = None,
    due_before: Optional[datetime] = None,
    due_after: Optional[datetime] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """List checklist items, earliest due first."""
    q = db.query(ComplianceItem)
    if spac_id is not None:
        q = q.filter(ComplianceItem.spac_id == spac_id)
    if status:
        q = q.filter(ComplianceItem.status.in_(status))
    if category:
        q = q.filter(ComplianceItem.category == category)
    if due_before:
        q = q.filter(ComplianceItem.due_date <= due_before)
    if due_after:
        q = q.filter(ComplianceItem.due_date >= due_after)

    q = q.order_by(ComplianceItem.due_date.asc().nullslast(), ComplianceItem.id.asc())
    return paginate(q, pagination)


@router.get("/items/overdue", response_model=list[ComplianceItemResponse])
def get_overdue_items(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Pending or in-progress items past their due date."""
    q = db.query(ComplianceItem).filter(
        ComplianceItem.status.in_(OPEN_COMPLIANCE_STATUSES),
        ComplianceItem.due_date < datetime.utcnow(),
    )
    if spac_id is not None:
        q = q.filter(ComplianceItem.spac_id == spac_id)
    return q.order_by(ComplianceItem.due_date.asc()).all()


@router.get("/items/statistics", response_model=ComplianceStatistics)
def get_compliance_statistics(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = db.query(ComplianceItem)
    if spac_id is not None:
        q = q.filter(ComplianceItem.spac_id == spac_id)
    items = q.all()

    now = datetime.utcnow()
    by_status = {s.value: 0 for s in ComplianceStatus}
    by_category: dict[str, int] = {}
    overdue = 0
    for item in items:
        by_status[item.status.value] += 1
        category = item.category or "uncategorized"
        by_category[category] = by_category.get(category, 0) + 1
        if item.status in OPEN_COMPLIANCE_STATUSES and item.due_date and item.due_date < now:
            overdue += 1

    return ComplianceStatistics(total=len(items), by_status=by_status, by_category=by_category, overdue=overdue)


@router.get("/items/{item_id}", response_model=ComplianceItemResponse)
def get_compliance_item(item_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, ComplianceItem, item_id, "Compliance item")


@router.post("/items", response_model=ComplianceItemResponse, status_code=201)
def create_compliance_item(request: ComplianceItemCreate, db: Session = Depends(get_db)):
    get_spac_or_404(db, request.spac_id)

    item = ComplianceItem(**request.model_dump())
    if item.status == ComplianceStatus.COMPLIANT:
        item.completed_date = datetime.utcnow()
    db.add(item)
    db.commit()
    db.refresh(item)

    logger.info("compliance_item.created", item_id=item.id, spac_id=item.spac_id)
    return item


@router.patch("/items/{item_id}", response_model=ComplianceItemResponse)
def update_compliance_item(item_id: int, request: ComplianceItemUpdate, db: Session = Depends(get_db)):
    item = _get_or_404(db, ComplianceItem, item_id, "Compliance item")
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return item


@router.post("/items/{item_id}/status", response_model=ComplianceItemResponse)
def update_compliance_item_status(
    item_id: int,
    request: ComplianceStatusRequest,
    db: Session = Depends(get_db),
):
    """Set an item's status; COMPLIANT stamps completed_date."""
    item = _get_or_404(db, ComplianceItem, item_id, "Compliance item")

    previous = item.status
    item.status = request.status
    if request.status == ComplianceStatus.COMPLIANT:
        item.completed_date = datetime.utcnow()
    db.commit()
    db.refresh(item)

    logger.info(
        "compliance_item.status_changed",
        item_id=item_id,
        from_status=previous.value,
        to_status=request.status.value,
    )
    return item


@router.delete("/items/{item_id}")
def delete_compliance_item(item_id: int, db: Session = Depends(get_db)):
    item = _get_or_404(db, ComplianceItem, item_id, "Compliance item")
    db.delete(item)
    db.commit()
    return {"status": "deleted", "item_id": item_id}


# --- Board meetings ---

@router.get("/board-meetings", response_model=Page[BoardMeetingResponse])
def list_board_meetings(
    spac_id: Optional[int] = None,
    type: Optional[str] = None,
    status: Optional[BoardMeetingStatus] = None,
    scheduled_after: Optional[datetime] = None,
    scheduled_before: Optional[datetime] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(BoardMeeting)
    if spac_id is not None:
        q = q.filter(BoardMeeting.spac_id == spac_id)
    if type:
        q = q.filter(BoardMeeting.type == type)
    if status:
        q = q.filter(BoardMeeting.status == status)
    if scheduled_after:
        q = q.filter(BoardMeeting.scheduled_date >= scheduled_after)
    if scheduled_before:
        q = q.filter(BoardMeeting.scheduled_date <= scheduled_before)

    q = q.order_by(BoardMeeting.scheduled_date.desc(), BoardMeeting.id.desc())
    return paginate(q, pagination)


@router.get("/board-meetings/upcoming", response_model=list[BoardMeetingResponse])
def get_upcoming_board_meetings(
    spac_id: Optional[int] = None,
    days: int = Query(30, ge=1, le=90),
    db: Session = Depends(get_db),
):
    """Scheduled meetings within the next days."""
    now = datetime.utcnow()
    q = db.query(BoardMeeting).filter(
        BoardMeeting.status == BoardMeetingStatus.SCHEDULED,
        BoardMeeting.scheduled_date >= now,
        BoardMeeting.scheduled_date <= now + timedelta(days=days),
    )
    if spac_id is not None:
        q = q.filter(BoardMeeting.spac_id == spac_id)
    return q.order_by(BoardMeeting.scheduled_date.asc()).all()


@router.get("/board-meetings/{meeting_id}", response_model=BoardMeetingResponse)
def get_board_meeting(meeting_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, BoardMeeting, meeting_id, "Board meeting")


@router.post("/board-meetings", response_model=BoardMeetingResponse, status_code=201)
def create_board_meeting(request: BoardMeetingCreate, db: Session = Depends(get_db)):
    get_spac_or_404(db, request.spac_id)

    meeting = BoardMeeting(**request.model_dump(), resolutions=[])
    db.add(meeting)
    db.commit()
    db.refresh(meeting)

    logger.info("board_meeting.created", meeting_id=meeting.id, spac_id=meeting.spac_id)
    return meeting


@router.patch("/board-meetings/{meeting_id}", response_model=BoardMeetingResponse)
def update_board_meeting(meeting_id: int, request: BoardMeetingUpdate, db: Session = Depends(get_db)):
    meeting = _get_or_404(db, BoardMeeting, meeting_id, "Board meeting")
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(meeting, field, value)
    db.commit()
    db.refresh(meeting)
    return meeting


@router.post("/board-meetings/{meeting_id}/status", response_model=BoardMeetingResponse)
def update_board_meeting_status(
    meeting_id: int,
    request: BoardMeetingStatusRequest,
    db: Session = Depends(get_db),
):
    """Set a meeting's status; completing it stamps actual_date when not given."""
    meeting = _get_or_404(db, BoardMeeting, meeting_id, "Board meeting")

    meeting.status = request.status
    if request.actual_date:
        meeting.actual_date = request.actual_date
    elif request.status == BoardMeetingStatus.COMPLETED and meeting.actual_date is None:
        meeting.actual_date = datetime.utcnow()
    if request.quorum_met is not None:
        meeting.quorum_met = request.quorum_met
    db.commit()
    db.refresh(meeting)
    return meeting


@router.post("/board-meetings/{meeting_id}/resolutions", response_model=BoardMeetingResponse, status_code=201)
def add_resolution(meeting_id: int, request: Resolution, db: Session = Depends(get_db)):
    """Append a resolution; numbers are unique within a meeting."""
    meeting = _get_or_404(db, BoardMeeting, meeting_id, "Board meeting")

    resolutions = list(meeting.resolutions or [])
    if any(r.get("number") == request.number for r in resolutions):
        raise HTTPException(status_code=409, detail=f"Resolution {request.number} already recorded")

    # JSON columns only persist on reassignment
    meeting.resolutions = resolutions + [request.model_dump()]
    db.commit()
    db.refresh(meeting)

    logger.info("board_meeting.resolution_added", meeting_id=meeting_id, number=request.number)
    return meeting


@router.delete("/board-meetings/{meeting_id}")
def delete_board_meeting(meeting_id: int, db: Session = Depends(get_db)):
    meeting = _get_or_404(db, BoardMeeting, meeting_id, "Board meeting")
    db.delete(meeting)
    db.commit()
    return {"status": "deleted", "meeting_id": meeting_id}


# --- Conflicts of interest ---

@router.get("/conflicts", response_model=Page[ConflictResponse])
def list_conflicts(
    spac_id: Optional[int] = None,
    severity: Optional[list[ConflictSeverity]] = Query(None),
    is_resolved: Optional[bool] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(Conflict)
    if spac_id is not None:
        q = q.filter(Conflict.spac_id == spac_id)
    if severity:
        q = q.filter(Conflict.severity.in_(severity))
    if is_resolved is not None:
        q = q.filter(Conflict.is_resolved == is_resolved)

    q = q.order_by(Conflict.created_at.desc(), Conflict.id.desc())
    return paginate(q, pagination)


@router.get("/conflicts/unresolved", response_model=list[ConflictResponse])
def get_unresolved_conflicts(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Open conflicts, most severe first, then oldest first."""
    q = db.query(Conflict).filter(Conflict.is_resolved.is_(False))
    if spac_id is not None:
        q = q.filter(Conflict.spac_id == spac_id)
    conflicts = q.order_by(Conflict.created_at.asc(), Conflict.id.asc()).all()
    return sorted(conflicts, key=lambda c: SEVERITY_RANK[c.severity])


@router.get("/conflicts/{conflict_id}", response_model=ConflictResponse)
def get_conflict(conflict_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Conflict, conflict_id, "Conflict")


@router.post("/conflicts", response_model=ConflictResponse, status_code=201)
def create_conflict(request: ConflictCreate, db: Session = Depends(get_db)):
    get_spac_or_404(db, request.spac_id)

    conflict = Conflict(**request.model_dump())
    db.add(conflict)
    db.commit()
    db.refresh(conflict)

    logger.info("conflict.logged", conflict_id=conflict.id, severity=conflict.severity.value)
    return conflict


@router.patch("/conflicts/{conflict_id}", response_model=ConflictResponse)
def update_conflict(conflict_id: int, request: ConflictUpdate, db: Session = Depends(get_db)):
    conflict = _get_or_404(db, Conflict, conflict_id, "Conflict")
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(conflict, field, value)
    db.commit()
    db.refresh(conflict)
    return conflict


@router.post("/conflicts/{conflict_id}/resolve", response_model=ConflictResponse)
def resolve_conflict(conflict_id: int, request: ConflictResolveRequest, db: Session = Depends(get_db)):
    """Mark a conflict resolved; naming the disclosing document stamps disclosed_date."""
    conflict = _get_or_404(db, Conflict, conflict_id, "Conflict")

    now = datetime.utcnow()
    conflict.is_resolved = True
    conflict.resolution = request.resolution
    conflict.resolved_date = now
    if request.disclosed_in:
        conflict.disclosed_in = request.disclosed_in
        conflict.disclosed_date = now
    db.commit()
    db.refresh(conflict)

    logger.info("conflict.resolved", conflict_id=conflict_id)
    return conflict


# --- Insider trading windows ---

def _check_window_dates(start_date: datetime, end_date: Optional[datetime]):
    if end_date is not None and end_date < start_date:
        raise HTTPException(status_code=400, detail="Trading window end date must not be before its start date")


def _active_blackouts(db: Session, now: datetime):
    return db.query(InsiderTradingWindow).filter(
        InsiderTradingWindow.status == TradingWindowStatus.BLACKOUT,
        InsiderTradingWindow.start_date <= now,
        or_(InsiderTradingWindow.end_date.is_(None), InsiderTradingWindow.end_date >= now),
    )


@router.get("/trading-windows", response_model=Page[TradingWindowResponse])
def list_trading_windows(
    spac_id: Optional[int] = None,
    status: Optional[list[TradingWindowStatus]] = Query(None),
    user_id: Optional[str] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(InsiderTradingWindow)
    if spac_id is not None:
        q = q.filter(InsiderTradingWindow.spac_id == spac_id)
    if status:
        q = q.filter(InsiderTradingWindow.status.in_(status))
    if user_id:
        q = q.filter(InsiderTradingWindow.user_id == user_id)

    q = q.order_by(InsiderTradingWindow.start_date.desc(), InsiderTradingWindow.id.desc())
    return paginate(q, pagination)


@router.get("/trading-windows/blackouts", response_model=list[TradingWindowResponse])
def get_active_blackouts(spac_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Blackout periods in force now (started, and not yet ended)."""
    q = _active_blackouts(db, datetime.utcnow())
    if spac_id is not None:
        q = q.filter(InsiderTradingWindow.spac_id == spac_id)
    return q.order_by(InsiderTradingWindow.start_date.desc()).all()


@router.get("/trading-windows/can-trade", response_model=CanTradeResponse)
def can_trade(spac_id: int, user_id: str, db: Session = Depends(get_db)):
    """
    Whether an insider may trade a SPAC's securities right now.

    Blocked by any active blackout that covers everyone or names the user.
    """
    get_spac_or_404(db, spac_id)
    blackouts = _active_blackouts(db, datetime.utcnow()).filter(
        InsiderTradingWindow.spac_id == spac_id,
        or_(InsiderTradingWindow.affects_all.is_(True), InsiderTradingWindow.user_id == user_id),
    ).all()
    return CanTradeResponse(can_trade=not blackouts, active_blackouts=blackouts)


@router.get("/trading-windows/{window_id}", response_model=TradingWindowResponse)
def get_trading_window(window_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, InsiderTradingWindow, window_id, "Trading window")


@router.post("/trading-windows", response_model=TradingWindowResponse, status_code=201)
def create_trading_window(request: TradingWindowCreate, db: Session = Depends(get_db)):
    get_spac_or_404(db, request.spac_id)
    _check_window_dates(request.start_date, request.end_date)

    window = InsiderTradingWindow(**request.model_dump())
    db.add(window)
    db.commit()
    db.refresh(window)

    logger.info(
        "trading_window.created",
        window_id=window.id,
        spac_id=window.spac_id,
        status=window.status.value,
        affects_all=window.affects_all,
    )
    return window


@router.patch("/trading-windows/{window_id}", response_model=TradingWindowResponse)
def update_trading_window(window_id: int, request: TradingWindowUpdate, db: Session = Depends(get_db)):
    window = _get_or_404(db, InsiderTradingWindow, window_id, "Trading window")

    data = request.model_dump(exclude_unset=True)
    _check_window_dates(
        data.get("start_date") or window.start_date,
        data["end_date"] if "end_date" in data else window.end_date,
    )
    for field, value in data.items():
        setattr(window, field, value)
    db.commit()
    db.refresh(window)
    return window


@router.post("/trading-windows/{window_id}/close", response_model=TradingWindowResponse)
def close_trading_window(window_id: int, request: CloseWindowRequest, db: Session = Depends(get_db)):
    """Close a window, ending it now unless an end date is given."""
    window = _get_or_404(db, InsiderTradingWindow, window_id, "Trading window")

    window.status = TradingWindowStatus.CLOSED
    window.end_date = request.end_date or datetime.utcnow()
    db.commit()
    db.refresh(window)

    logger.info("trading_window.closed", window_id=window_id)
    return window
