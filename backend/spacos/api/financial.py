"""Cap table, trust account and dilution API routes."""
from typing import Optional
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import structlog

from spacos.api.spacs import get_spac_or_404
from spacos.db.base import get_db
from spacos.models.financial import CapTableEntry, HolderType, TrustAccount
from spacos.schemas.financial import (
    CapTableEntryCreate, CapTableEntryUpdate, CapTableEntryResponse, CapTableGroup,
    CapTableSummary, TrustBalanceRequest, TrustAccountResponse, WaterfallRequest,
    WaterfallResponse, StageAnalysisRequest, StageAnalysisResponse,
)
from spacos.services.dilution import (
    DilutionError, DilutionItem, OwnershipStage, Scenario, calculate_waterfall,
    items_from_cap_table, select_scenario, sort_stages, stage_dilution,
)

router = APIRouter(prefix="/financial", tags=["financial"])
logger = structlog.get_logger(__name__)


def get_entry_or_404(db: Session, entry_id: int) -> CapTableEntry:
    entry = db.query(CapTableEntry).filter(CapTableEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Cap table entry not found")
    return entry


def _latest_trust_account(db: Session, spac_id: int) -> Optional[TrustAccount]:
    return db.query(TrustAccount).filter(
        TrustAccount.spac_id == spac_id
    ).order_by(TrustAccount.balance_date.desc(), TrustAccount.id.desc()).first()


def _group(entries: list[CapTableEntry]) -> CapTableGroup:
    return CapTableGroup(
        total_shares=str(sum(e.shares_owned or 0 for e in entries)),
        total_ownership=float(sum(e.ownership_pct or 0 for e in entries)),
        count=len(entries),
    )


# --- Cap table ---

@router.get("/spacs/{spac_id}/cap-table", response_model=list[CapTableEntryResponse])
def list_cap_table(
    spac_id: int,
    share_class: Optional[str] = None,
    holder_type: Optional[HolderType] = None,
    db: Session = Depends(get_db),
):
    """Cap table entries, largest ownership first."""
    get_spac_or_404(db, spac_id)

    q = db.query(CapTableEntry).filter(CapTableEntry.spac_id == spac_id)
    if share_class:
        q = q.filter(CapTableEntry.share_class == share_class)
    if holder_type:
        q = q.filter(CapTableEntry.holder_type == holder_type)
    return q.order_by(
        CapTableEntry.ownership_pct.desc().nullslast(),
        CapTableEntry.shares_owned.desc(),
    ).all()


@router.get("/spacs/{spac_id}/cap-table/summary", response_model=CapTableSummary)
def get_cap_table_summary(spac_id: int, db: Session = Depends(get_db)):
    """
    Totals by share class and holder type.

    Share totals are strings so large counts survive JSON clients.
    """
    get_spac_or_404(db, spac_id)
    entries = db.query(CapTableEntry).filter(CapTableEntry.spac_id == spac_id).all()

    by_class: dict[str, list[CapTableEntry]] = {}
    by_type: dict[str, list[CapTableEntry]] = {}
    for entry in entries:
        by_class.setdefault(entry.share_class, []).append(entry)
        by_type.setdefault(entry.holder_type.value, []).append(entry)

    return CapTableSummary(
        spac_id=spac_id,
        total_shares=str(sum(e.shares_owned or 0 for e in entries)),
        holder_count=len(entries),
        by_share_class={k: _group(v) for k, v in by_class.items()},
        by_holder_type={k: _group(v) for k, v in by_type.items()},
    )


@router.post("/spacs/{spac_id}/cap-table", response_model=CapTableEntryResponse, status_code=201)
def create_cap_table_entry(
    spac_id: int,
    request: CapTableEntryCreate,
    db: Session = Depends(get_db),
):
    get_spac_or_404(db, spac_id)
    entry = CapTableEntry(spac_id=spac_id, **request.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@router.patch("/cap-table/{entry_id}", response_model=CapTableEntryResponse)
def update_cap_table_entry(
    entry_id: int,
    request: CapTableEntryUpdate,
    db: Session = Depends(get_db),
):
    entry = get_entry_or_404(db, entry_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/cap-table/{entry_id}")
def delete_cap_table_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = get_entry_or_404(db, entry_id)
    db.delete(entry)
    db.commit()
    return {"status": "deleted", "entry_id": entry_id}


# --- Trust account ---

@router.post("/spacs/{spac_id}/trust", response_model=TrustAccountResponse, status_code=201)
def record_trust_balance(
    spac_id: int,
    request: TrustBalanceRequest,
    db: Session = Depends(get_db),
):
    """
    Record a new trust balance.

    Appends to the account's balance history and mirrors the balance onto
    the SPAC's trust_balance.
    """
    spac = get_spac_or_404(db, spac_id)
    balance_date = request.balance_date or datetime.utcnow()

    account = _latest_trust_account(db, spac_id)
    if account is None:
        account = TrustAccount(spac_id=spac_id, balance_history=[])
        db.add(account)

    account.current_balance = Decimal(str(request.balance))
    account.balance_date = balance_date
    if request.per_share_value is not None:
        account.per_share_value = Decimal(str(request.per_share_value))
    if request.accrued_interest is not None:
        account.accrued_interest = Decimal(str(request.accrued_interest))
    if request.bank_name:
        account.bank_name = request.bank_name

    # Reassign so the JSON column is flagged dirty
    account.balance_history = (account.balance_history or []) + [{
        "date": balance_date.isoformat(),
        "balance": request.balance,
        "note": request.note,
    }]
    spac.trust_balance = account.current_balance
    db.commit()
    db.refresh(account)

    logger.info("trust.balance_recorded", spac_id=spac_id, balance=request.balance)
    return account


@router.get("/spacs/{spac_id}/trust", response_model=TrustAccountResponse)
def get_trust_account(spac_id: int, db: Session = Depends(get_db)):
    get_spac_or_404(db, spac_id)
    account = _latest_trust_account(db, spac_id)
    if not account:
        raise HTTPException(status_code=404, detail="Trust account not found")
    return account


@router.get("/spacs/{spac_id}/trust/history")
def get_trust_history(spac_id: int, db: Session = Depends(get_db)):
    """Balance history entries, oldest first."""
    get_spac_or_404(db, spac_id)
    account = _latest_trust_account(db, spac_id)
    if not account:
        return []
    return sorted(account.balance_history or [], key=lambda h: h["date"])


# --- Dilution ---

@router.get("/spacs/{spac_id}/dilution", response_model=WaterfallResponse)
def get_spac_dilution(spac_id: int, db: Session = Depends(get_db)):
    """Dilution waterfall built from the SPAC's cap table."""
    get_spac_or_404(db, spac_id)
    entries = db.query(CapTableEntry).filter(
        CapTableEntry.spac_id == spac_id
    ).order_by(CapTableEntry.id).all()
    if not entries:
        raise HTTPException(status_code=400, detail="SPAC has no cap table entries")

    try:
        return calculate_waterfall(items_from_cap_table(entries))
    except DilutionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dilution/calculate", response_model=WaterfallResponse)
def calculate_dilution(request: WaterfallRequest):
    """
    Calculate a dilution waterfall.

    - **scenario**: Name of one of the supplied scenarios to use instead of
      the base items
    """
    items = [DilutionItem(**i.model_dump()) for i in request.items]
    scenarios = [
        Scenario(name=s.name, items=[DilutionItem(**i.model_dump()) for i in s.items])
        for s in request.scenarios
    ]
    try:
        return calculate_waterfall(
            select_scenario(items, scenarios, request.scenario),
            total_shares=request.total_shares,
        )
    except DilutionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dilution/stages", response_model=StageAnalysisResponse)
def analyze_stages(request: StageAnalysisRequest):
    """Order ownership stages and compare the selected one to post_ipo."""
    stages = sort_stages([OwnershipStage(**s.model_dump()) for s in request.stages])
    dilution = stage_dilution(stages, request.selected_stage)
    return StageAnalysisResponse(
        stages=[asdict(s) for s in stages],
        dilution=asdict(dilution) if dilution else None,
    )
