from pydantic import BaseModel, ConfigDict, field_validator
from datetime import date, datetime
from typing import List, Optional

from app.models.important_note import NoteCategory


def _check_date_str(v):
    if v is not None:
        date.fromisoformat(v)  # raises ValueError on bad format
    return v


class NoteBase(BaseModel):
    date_str: Optional[str] = None  # YYYY-MM-DD
    area: Optional[str] = None
    chemical_name: Optional[str] = None
    note: Optional[str] = None
    category: NoteCategory = NoteCategory.OTHER
    tank_id: Optional[str] = None

    @field_validator('date_str')
    @classmethod
    def valid_date(cls, v):
        return _check_date_str(v)


class NoteCreate(NoteBase):
    id: Optional[str] = None


class NoteUpdate(BaseModel):
    date_str: Optional[str] = None
    area: Optional[str] = None
    chemical_name: Optional[str] = None
    note: Optional[str] = None
    category: Optional[NoteCategory] = None
    tank_id: Optional[str] = None

    @field_validator('date_str')
    @classmethod
    def valid_date(cls, v):
        return _check_date_str(v)


class NoteResponse(NoteBase):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NoteBatch(BaseModel):
    notes: List[NoteCreate]

    @field_validator('notes')
    @classmethod
    def not_empty(cls, v):
        if not v:
            raise ValueError('notes must not be empty')
        return v
