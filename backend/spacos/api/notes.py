"""Note API routes for targets and SPACs."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import structlog

from spacos.api.pagination import PageParams, paginate
from spacos.api.spacs import get_spac_or_404
from spacos.api.targets import get_target_or_404
from spacos.db.base import get_db
from spacos.models.note import Note
from spacos.schemas.common import Page
from spacos.schemas.note import NoteCreate, NoteUpdate, NoteResponse

router = APIRouter(prefix="/notes", tags=["notes"])
logger = structlog.get_logger(__name__)


def get_note_or_404(db: Session, note_id: int) -> Note:
    note = db.query(Note).filter(Note.id == note_id).first()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


def _newest_first(q):
    return q.order_by(Note.created_at.desc(), Note.id.desc())


@router.get("", response_model=Page[NoteResponse])
def list_notes(
    target_id: Optional[int] = None,
    spac_id: Optional[int] = None,
    pagination: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(Note)
    if target_id is not None:
        q = q.filter(Note.target_id == target_id)
    if spac_id is not None:
        q = q.filter(Note.spac_id == spac_id)
    return paginate(_newest_first(q), pagination)


@router.get("/target/{target_id}", response_model=list[NoteResponse])
def get_notes_by_target(target_id: int, db: Session = Depends(get_db)):
    get_target_or_404(db, target_id)
    return _newest_first(db.query(Note).filter(Note.target_id == target_id)).all()


@router.get("/spac/{spac_id}", response_model=list[NoteResponse])
def get_notes_by_spac(spac_id: int, db: Session = Depends(get_db)):
    get_spac_or_404(db, spac_id)
    return _newest_first(db.query(Note).filter(Note.spac_id == spac_id)).all()


@router.get("/{note_id}", response_model=NoteResponse)
def get_note(note_id: int, db: Session = Depends(get_db)):
    return get_note_or_404(db, note_id)


@router.post("", response_model=NoteResponse, status_code=201)
def create_note(request: NoteCreate, db: Session = Depends(get_db)):
    """Create a note on a target, a SPAC, or both; each must exist."""
    if request.target_id is not None:
        get_target_or_404(db, request.target_id)
    if request.spac_id is not None:
        get_spac_or_404(db, request.spac_id)

    note = Note(**request.model_dump())
    db.add(note)
    db.commit()
    db.refresh(note)

    logger.info("note.created", note_id=note.id, target_id=note.target_id, spac_id=note.spac_id)
    return note


@router.patch("/{note_id}", response_model=NoteResponse)
def update_note(note_id: int, request: NoteUpdate, db: Session = Depends(get_db)):
    note = get_note_or_404(db, note_id)
    note.content = request.content
    db.commit()
    db.refresh(note)
    return note


@router.delete("/{note_id}")
def delete_note(note_id: int, db: Session = Depends(get_db)):
    note = get_note_or_404(db, note_id)
    db.delete(note)
    db.commit()
    return {"success": True}
