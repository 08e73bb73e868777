from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base
from app.models.tank import new_id


class ChemicalSupply(Base):
    """A supply contract; a new contract is a new row, never an in-place edit of the past."""
    __tablename__ = "chemical_supplies"

    id = Column(String(50), primary_key=True, default=new_id)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_name = Column(String(100), nullable=False)
    chemical_name = Column(String(100), nullable=True)
    specific_gravity = Column(Float, nullable=False)
    price = Column(Float, nullable=True)  # per kg
    start_date = Column(DateTime, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    target_ppm = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('specific_gravity > 0', name='check_sg_positive'),
    )

    tank = relationship("Tank", back_populates="supplies")
    readings = relationship("Reading", back_populates="supply")

    def __repr__(self):
        return f"<ChemicalSupply(id='{self.id}', tank_id='{self.tank_id}', start_date='{self.start_date}')>"
