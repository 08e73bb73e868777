from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from datetime import datetime
from typing import Optional


class CWSParamBase(BaseModel):
    circulation_rate: Optional[float] = None  # m3/hr
    temp_outlet: Optional[float] = None
    temp_return: Optional[float] = None
    temp_diff: Optional[float] = None
    cws_hardness: Optional[float] = None
    makeup_hardness: Optional[float] = None
    concentration_cycles: Optional[float] = None
    date: Optional[datetime] = None

    @field_validator('circulation_rate', 'cws_hardness', 'makeup_hardness', 'concentration_cycles')
    @classmethod
    def must_not_be_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Value must not be negative')
        return v

    @model_validator(mode='after')
    def derive_temp_diff(self):
        if self.temp_diff is None and self.temp_outlet is not None and self.temp_return is not None:
            self.temp_diff = abs(self.temp_return - self.temp_outlet)
        return self


class CWSParamCreate(CWSParamBase):
    tank_id: str


class CWSParamUpdate(CWSParamBase):
    pass


class CWSParamResponse(CWSParamBase):
    id: str
    tank_id: str
    date: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BWSParamBase(BaseModel):
    steam_production: Optional[float] = None  # tons per week
    date: Optional[datetime] = None

    @field_validator('steam_production')
    @classmethod
    def must_not_be_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError('Value must not be negative')
        return v


class BWSParamCreate(BWSParamBase):
    tank_id: str


class BWSParamUpdate(BWSParamBase):
    pass


class BWSParamResponse(BWSParamBase):
    id: str
    tank_id: str
    date: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
