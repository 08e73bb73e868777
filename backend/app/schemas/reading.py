from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional


def _positive_sg(v):
    if v is not None and v <= 0:
        raise ValueError('applied_sg must be positive')
    return v


class ReadingBase(BaseModel):
    tank_id: str
    timestamp: datetime
    level_cm: float
    added_amount_liters: float = 0.0
    operator_name: Optional[str] = None

    @field_validator('added_amount_liters')
    @classmethod
    def added_not_negative(cls, v):
        if v < 0:
            raise ValueError('added_amount_liters must not be negative')
        return v


class ReadingCreate(ReadingBase):
    id: Optional[str] = None
    # Manual SG override; otherwise the active supply's SG is applied
    applied_sg: Optional[float] = None
    supply_id: Optional[str] = None

    @field_validator('applied_sg')
    @classmethod
    def sg_positive(cls, v):
        return _positive_sg(v)


class ReadingUpdate(BaseModel):
    timestamp: Optional[datetime] = None
    level_cm: Optional[float] = None
    applied_sg: Optional[float] = None
    supply_id: Optional[str] = None
    added_amount_liters: Optional[float] = None
    operator_name: Optional[str] = None

    @field_validator('applied_sg')
    @classmethod
    def sg_positive(cls, v):
        return _positive_sg(v)

    @field_validator('added_amount_liters')
    @classmethod
    def added_not_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('added_amount_liters must not be negative')
        return v


class ReadingResponse(ReadingBase):
    id: str
    calculated_volume: float
    calculated_weight_kg: float
    applied_sg: float
    sg_overridden: bool = False
    supply_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReadingBatch(BaseModel):
    readings: List[ReadingCreate]


class ReadingCalculationRequest(BaseModel):
    tank_id: str
    level_cm: float
    timestamp: Optional[datetime] = None
    applied_sg: Optional[float] = None

    @field_validator('applied_sg')
    @classmethod
    def sg_positive(cls, v):
        return _positive_sg(v)


class ReadingCalculationResponse(BaseModel):
    tank_id: str
    level_cm: float
    calculated_volume: float
    calculated_weight_kg: float
    applied_sg: float
    supply_id: Optional[str] = None
    percent_full: float
    over_capacity: bool
    capacity_warning: bool
    below_safe_level: bool
