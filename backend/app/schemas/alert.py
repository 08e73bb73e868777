from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional

from app.models.fluctuation_alert import AlertSource


class AlertBase(BaseModel):
    tank_id: str
    tank_name: Optional[str] = None
    date_str: Optional[str] = None
    reason: Optional[str] = None
    current_value: Optional[float] = None
    prev_value: Optional[float] = None
    next_value: Optional[float] = None
    is_possible_refill: bool = False
    source: AlertSource = AlertSource.MANUAL
    note: Optional[str] = None


class AlertCreate(AlertBase):
    id: Optional[str] = None


class AlertNoteUpdate(BaseModel):
    note: Optional[str] = None


class AlertResponse(AlertBase):
    id: str
    dismissed: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AlertBatch(BaseModel):
    alerts: List[AlertCreate]


class AlertIds(BaseModel):
    ids: List[str]
    threshold: Optional[float] = None  # % used by the scan that produced unsaved ids

    @field_validator('ids')
    @classmethod
    def not_empty(cls, v):
        if not v:
            raise ValueError('ids must not be empty')
        return v


class FluctuationResult(BaseModel):
    """A flag produced by scanning readings (not necessarily persisted)."""
    id: str
    tank_id: str
    tank_name: Optional[str] = None
    timestamp: datetime
    prev_timestamp: datetime
    next_timestamp: Optional[datetime] = None
    date_str: str
    prev_date_str: str
    next_date_str: Optional[str] = None
    prev_value: float
    current_value: float
    next_value: Optional[float] = None
    delta: float
    daily_rate: float
    threshold: float
    reason: str
    is_possible_refill: bool
    source: AlertSource
    note: Optional[str] = None
