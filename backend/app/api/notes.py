from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.database import get_db
from app.models import ImportantNote, Tank
from app.schemas import NoteCreate, NoteUpdate, NoteResponse, NoteBatch

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_tank(db: Session, tank_id: Optional[str]) -> None:
    if tank_id and not db.get(Tank, tank_id):
        raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")


def _upsert_note(db: Session, payload: NoteCreate) -> ImportantNote:
    _check_tank(db, payload.tank_id)
    note = db.get(ImportantNote, payload.id) if payload.id else None
    if note is None:
        note = ImportantNote(id=payload.id) if payload.id else ImportantNote()
        db.add(note)
    for field, value in payload.model_dump(mode="json", exclude={"id"}).items():
        setattr(note, field, value)
    return note


@router.get("/notes", response_model=List[NoteResponse])
async def list_notes(
    tank_id: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    db: Session = Depends(get_db)
):
    """Important notes, newest first."""
    query = db.query(ImportantNote)
    if tank_id:
        query = query.filter(ImportantNote.tank_id == tank_id)
    if year:
        query = query.filter(ImportantNote.date_str.like(f"{year:04d}-%"))
    return query.order_by(ImportantNote.date_str.desc(), ImportantNote.created_at.desc()).all()


@router.post("/notes", response_model=NoteResponse, status_code=201)
async def create_note(payload: NoteCreate, db: Session = Depends(get_db)):
    note = _upsert_note(db, payload)
    db.commit()
    db.refresh(note)
    return note


@router.post("/notes/batch", response_model=List[NoteResponse])
async def batch_create_notes(payload: NoteBatch, db: Session = Depends(get_db)):
    try:
        notes = [_upsert_note(db, p) for p in payload.notes]
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Note batch of {len(payload.notes)} rolled back")
        raise
    for note in notes:
        db.refresh(note)
    return notes


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(note_id: str, payload: NoteUpdate, db: Session = Depends(get_db)):
    note = db.get(ImportantNote, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    changes = payload.model_dump(mode="json", exclude_unset=True)
    _check_tank(db, changes.get("tank_id"))
    for field, value in changes.items():
        setattr(note, field, value)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/notes/{note_id}")
async def delete_note(note_id: str, db: Session = Depends(get_db)):
    note = db.get(ImportantNote, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    db.delete(note)
    db.commit()
    return {"message": "Note deleted successfully"}
