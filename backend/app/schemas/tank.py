from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from datetime import datetime
from typing import List, Optional

from app.models.tank import SystemType, CalculationMethod, ShapeType, HeadType, InputUnit
from app.schemas.parameters import CWSParamBase, BWSParamBase, CWSParamResponse, BWSParamResponse
from app.services.geometry import validate_geometry


class TankDimensions(BaseModel):
    diameter: Optional[float] = None  # cm (inside diameter)
    length: Optional[float] = None  # cm, tangent to tangent for horizontal tanks
    width: Optional[float] = None  # cm
    height: Optional[float] = None  # cm
    sensor_offset: Optional[float] = None  # cm from bottom to sensor zero
    head_type: Optional[HeadType] = None


def _check_percent(v, name):
    if v is not None and not 0 <= v <= 100:
        raise ValueError(f'{name} must be within [0, 100]')
    return v


class TankBase(BaseModel):
    name: str
    system_type: SystemType
    capacity_liters: float
    geo_factor: float
    description: Optional[str] = None
    safe_min_level: float = 20.0
    target_daily_usage: Optional[float] = None
    calculation_method: CalculationMethod = CalculationMethod.NONE
    shape_type: Optional[ShapeType] = None
    dimensions: Optional[TankDimensions] = None
    input_unit: InputUnit = InputUnit.CM
    sort_order: int = 0
    validation_threshold: float = 30.0
    max_capacity_warning_kg: Optional[float] = None
    sg_range_min: Optional[float] = None
    sg_range_max: Optional[float] = None

    @field_validator('capacity_liters', 'geo_factor')
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError('Value must be positive')
        return v

    @field_validator('safe_min_level')
    @classmethod
    def safe_min_level_range(cls, v):
        return _check_percent(v, 'safe_min_level')

    @field_validator('validation_threshold')
    @classmethod
    def threshold_range(cls, v):
        if not 0 < v <= 100:
            raise ValueError('validation_threshold must be within (0, 100]')
        return v


class TankCreate(TankBase):
    id: Optional[str] = None
    cws_params: Optional[CWSParamBase] = None
    bws_params: Optional[BWSParamBase] = None

    @model_validator(mode='after')
    def geometry_is_usable(self):
        validate_geometry(self)
        return self


class TankUpdate(BaseModel):
    name: Optional[str] = None
    system_type: Optional[SystemType] = None
    capacity_liters: Optional[float] = None
    geo_factor: Optional[float] = None
    description: Optional[str] = None
    safe_min_level: Optional[float] = None
    target_daily_usage: Optional[float] = None
    calculation_method: Optional[CalculationMethod] = None
    shape_type: Optional[ShapeType] = None
    dimensions: Optional[TankDimensions] = None
    input_unit: Optional[InputUnit] = None
    sort_order: Optional[int] = None
    validation_threshold: Optional[float] = None
    max_capacity_warning_kg: Optional[float] = None
    sg_range_min: Optional[float] = None
    sg_range_max: Optional[float] = None
    cws_params: Optional[CWSParamBase] = None
    bws_params: Optional[BWSParamBase] = None

    @field_validator('capacity_liters', 'geo_factor')
    @classmethod
    def must_be_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Value must be positive')
        return v

    @field_validator('safe_min_level')
    @classmethod
    def safe_min_level_range(cls, v):
        return _check_percent(v, 'safe_min_level')

    @field_validator('validation_threshold')
    @classmethod
    def threshold_range(cls, v):
        if v is not None and not 0 < v <= 100:
            raise ValueError('validation_threshold must be within (0, 100]')
        return v


class TankResponse(TankBase):
    id: str
    cws_params: Optional[CWSParamResponse] = None
    bws_params: Optional[BWSParamResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TankReorderItem(BaseModel):
    id: str
    sort_order: int


class TankReorder(BaseModel):
    updates: List[TankReorderItem]


class TankLevelResponse(BaseModel):
    tank_id: str
    current_volume: Optional[float] = None
    current_weight_kg: Optional[float] = None
    capacity_liters: float
    percent_full: Optional[float] = None
    safe_min_level: float
    below_safe_level: bool = False
    last_reading: Optional[datetime] = None
