from sqlalchemy import Column, String, Float, Integer, Text, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from app.database import Base


class SystemType(str, enum.Enum):
    BOILER = "BOILER"
    COOLING = "COOLING"
    WASTEWATER = "WASTEWATER"
    DENOX = "DENOX"


class CalculationMethod(str, enum.Enum):
    NONE = "NONE"
    CWS_BLOWDOWN = "CWS_BLOWDOWN"
    BWS_STEAM = "BWS_STEAM"


class ShapeType(str, enum.Enum):
    VERTICAL_CYLINDER = "VERTICAL_CYLINDER"
    HORIZONTAL_CYLINDER = "HORIZONTAL_CYLINDER"
    RECTANGULAR = "RECTANGULAR"


class HeadType(str, enum.Enum):
    FLAT = "FLAT"
    HEMISPHERICAL = "HEMISPHERICAL"
    SEMI_ELLIPTICAL_2_1 = "SEMI_ELLIPTICAL_2_1"


class InputUnit(str, enum.Enum):
    CM = "CM"
    PERCENT = "PERCENT"


def new_id() -> str:
    return str(uuid.uuid4())


class Tank(Base):
    """A chemical dosing tank and its geometry / validation configuration."""
    __tablename__ = "tanks"

    id = Column(String(50), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    system_type = Column(String(50), nullable=False, index=True)
    capacity_liters = Column(Float, nullable=False)
    geo_factor = Column(Float, nullable=False)  # Liters per cm
    description = Column(Text, nullable=True)
    safe_min_level = Column(Float, default=20.0)  # %
    target_daily_usage = Column(Float, nullable=True)
    calculation_method = Column(String(50), default=CalculationMethod.NONE.value)

    # Geometry: when dimensions are empty the linear geo_factor is used
    shape_type = Column(String(50), nullable=True)
    dimensions = Column(JSON, nullable=True)
    input_unit = Column(String(10), default=InputUnit.CM.value)

    sort_order = Column(Integer, default=0)
    validation_threshold = Column(Float, default=30.0)  # % of capacity per day
    max_capacity_warning_kg = Column(Float, nullable=True)
    sg_range_min = Column(Float, nullable=True)
    sg_range_max = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('capacity_liters > 0', name='check_capacity_positive'),
        CheckConstraint('geo_factor > 0', name='check_geo_factor_positive'),
        CheckConstraint('safe_min_level >= 0 AND safe_min_level <= 100', name='check_safe_min_level_range'),
    )

    # Relationships
    readings = relationship("Reading", back_populates="tank", cascade="all, delete-orphan")
    supplies = relationship("ChemicalSupply", back_populates="tank", cascade="all, delete-orphan")
    cws_history = relationship("CWSParameter", back_populates="tank", cascade="all, delete-orphan")
    bws_history = relationship("BWSParameter", back_populates="tank", cascade="all, delete-orphan")

    @staticmethod
    def _latest(history):
        if not history:
            return None
        return max(history, key=lambda p: (p.date, p.updated_at or datetime.min, str(p.id)))

    @property
    def cws_params(self):
        """Latest CWS parameter record, joined for CWS_BLOWDOWN tanks."""
        if self.calculation_method != CalculationMethod.CWS_BLOWDOWN:
            return None
        return self._latest(self.cws_history)

    @property
    def bws_params(self):
        """Latest BWS parameter record, joined for BWS_STEAM tanks."""
        if self.calculation_method != CalculationMethod.BWS_STEAM:
            return None
        return self._latest(self.bws_history)

    def __repr__(self):
        return f"<Tank(id='{self.id}', name='{self.name}')>"
