"""Private-equity ownership stake API routes."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import structlog

from spacos.api.organizations import get_organization_or_404
from spacos.db.base import get_db
from spacos.models.ownership import OwnershipStake, ExitStatus
from spacos.schemas.ownership import StakeCreate, StakeUpdate, StakeResponse

router = APIRouter(prefix="/ownership", tags=["ownership"])
logger = structlog.get_logger(__name__)


def get_stake_or_404(db: Session, stake_id: int) -> OwnershipStake:
    stake = db.query(OwnershipStake).filter(OwnershipStake.id == stake_id).first()
    if not stake:
        raise HTTPException(status_code=404, detail="Ownership stake not found")
    return stake


@router.get("/owner/{owner_id}", response_model=list[StakeResponse])
def list_portfolio(
    owner_id: int,
    exit_status: Optional[ExitStatus] = None,
    db: Session = Depends(get_db),
):
    """Portfolio companies held by an owner, largest stake first."""
    get_organization_or_404(db, owner_id)
    q = db.query(OwnershipStake).filter(OwnershipStake.owner_id == owner_id)
    if exit_status:
        q = q.filter(OwnershipStake.exit_status == exit_status)
    return q.order_by(OwnershipStake.ownership_pct.desc()).all()


@router.get("/owned/{owned_id}", response_model=list[StakeResponse])
def list_owners(owned_id: int, db: Session = Depends(get_db)):
    """Organizations holding a stake in owned_id."""
    get_organization_or_404(db, owned_id)
    return db.query(OwnershipStake).filter(
        OwnershipStake.owned_id == owned_id
    ).order_by(OwnershipStake.ownership_pct.desc()).all()


@router.get("/{stake_id}", response_model=StakeResponse)
def get_stake(stake_id: int, db: Session = Depends(get_db)):
    return get_stake_or_404(db, stake_id)


@router.post("", response_model=StakeResponse, status_code=201)
def create_stake(request: StakeCreate, db: Session = Depends(get_db)):
    if request.owner_id == request.owned_id:
        raise HTTPException(status_code=400, detail="An organization cannot own itself")
    get_organization_or_404(db, request.owner_id)
    get_organization_or_404(db, request.owned_id)

    existing = db.query(OwnershipStake).filter(
        OwnershipStake.owner_id == request.owner_id,
        OwnershipStake.owned_id == request.owned_id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Ownership stake already exists for this pair")

    stake = OwnershipStake(**request.model_dump())
    db.add(stake)
    db.commit()
    db.refresh(stake)

    logger.info("ownership.created", stake_id=stake.id, owner_id=stake.owner_id, owned_id=stake.owned_id)
    return stake


@router.patch("/{stake_id}", response_model=StakeResponse)
def update_stake(stake_id: int, request: StakeUpdate, db: Session = Depends(get_db)):
    stake = get_stake_or_404(db, stake_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(stake, field, value)
    db.commit()
    db.refresh(stake)
    return stake


@router.delete("/{stake_id}")
def delete_stake(stake_id: int, db: Session = Depends(get_db)):
    stake = get_stake_or_404(db, stake_id)
    db.delete(stake)
    db.commit()
    return {"status": "deleted", "stake_id": stake_id}
