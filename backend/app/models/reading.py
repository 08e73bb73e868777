from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base
from app.models.tank import new_id


class Reading(Base):
    """Tank level reading with the volume/weight snapshot computed at save time."""
    __tablename__ = "readings"

    id = Column(String(50), primary_key=True, default=new_id)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    level_cm = Column(Float, nullable=False)  # cm, or % for PERCENT tanks

    # Snapshot data
    calculated_volume = Column(Float, nullable=False)  # Liters
    calculated_weight_kg = Column(Float, nullable=False)
    applied_sg = Column(Float, nullable=False)
    sg_overridden = Column(Boolean, default=False, nullable=False)  # applied_sg entered by the operator
    supply_id = Column(String(50), ForeignKey("chemical_supplies.id", ondelete="SET NULL"), nullable=True)

    added_amount_liters = Column(Float, default=0.0)
    operator_name = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    tank = relationship("Tank", back_populates="readings")
    supply = relationship("ChemicalSupply", back_populates="readings")

    __table_args__ = (
        Index('ix_readings_tank_timestamp', 'tank_id', 'timestamp'),
    )

    def __repr__(self):
        return f"<Reading(id='{self.id}', timestamp='{self.timestamp}', level_cm={self.level_cm})>"
