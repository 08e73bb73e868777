from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime
from typing import List, Optional


class SupplyBase(BaseModel):
    tank_id: str
    supplier_name: str
    chemical_name: Optional[str] = None
    specific_gravity: float
    price: Optional[float] = None  # per kg
    start_date: datetime
    notes: Optional[str] = None
    target_ppm: Optional[float] = None

    @field_validator('specific_gravity')
    @classmethod
    def sg_positive(cls, v):
        if v <= 0:
            raise ValueError('specific_gravity must be positive')
        return v

    @field_validator('price', 'target_ppm')
    @classmethod
    def not_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Value must not be negative')
        return v


class SupplyCreate(SupplyBase):
    id: Optional[str] = None


class SupplyUpdate(BaseModel):
    supplier_name: Optional[str] = None
    chemical_name: Optional[str] = None
    specific_gravity: Optional[float] = None
    price: Optional[float] = None
    start_date: Optional[datetime] = None
    notes: Optional[str] = None
    target_ppm: Optional[float] = None

    @field_validator('specific_gravity')
    @classmethod
    def sg_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('specific_gravity must be positive')
        return v


class SupplyResponse(SupplyBase):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SupplyBatch(BaseModel):
    supplies: List[SupplyCreate]
