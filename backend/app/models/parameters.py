from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base
from app.models.tank import new_id


class CWSParameter(Base):
    """Cooling water dosing inputs; several dated records per tank."""
    __tablename__ = "cws_parameters"

    id = Column(String(50), primary_key=True, default=new_id)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="CASCADE"), nullable=False, index=True)
    circulation_rate = Column(Float, nullable=True)  # m3/hr
    temp_outlet = Column(Float, nullable=True)
    temp_return = Column(Float, nullable=True)
    temp_diff = Column(Float, nullable=True)
    cws_hardness = Column(Float, nullable=True)  # ppm
    makeup_hardness = Column(Float, nullable=True)  # ppm
    concentration_cycles = Column(Float, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tank = relationship("Tank", back_populates="cws_history")

    def __repr__(self):
        return f"<CWSParameter(id='{self.id}', tank_id='{self.tank_id}', date='{self.date}')>"


class BWSParameter(Base):
    """Boiler water dosing inputs; steam production is the weekly total in tons."""
    __tablename__ = "bws_parameters"

    id = Column(String(50), primary_key=True, default=new_id)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="CASCADE"), nullable=False, index=True)
    steam_production = Column(Float, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tank = relationship("Tank", back_populates="bws_history")

    def __repr__(self):
        return f"<BWSParameter(id='{self.id}', tank_id='{self.tank_id}', date='{self.date}')>"
