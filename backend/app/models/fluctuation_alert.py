from sqlalchemy import Column, String, Float, Boolean, Text, DateTime, ForeignKey
from datetime import datetime
import enum

from app.database import Base


class AlertSource(str, enum.Enum):
    IMPORT = "IMPORT"
    MANUAL = "MANUAL"


class FluctuationAlert(Base):
    """
    A reviewed fluctuation flag. Alerts are produced by scanning readings;
    a row exists only once an alert was annotated or dismissed. The id is the
    stable identity of the reading pair, so re-scans find it again.
    """
    __tablename__ = "fluctuation_alerts"

    id = Column(String(50), primary_key=True)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="CASCADE"), nullable=False, index=True)
    tank_name = Column(String(100), nullable=True)
    date_str = Column(String(10), nullable=True, index=True)
    reason = Column(Text, nullable=True)
    current_value = Column(Float, nullable=True)
    prev_value = Column(Float, nullable=True)
    next_value = Column(Float, nullable=True)
    is_possible_refill = Column(Boolean, default=False)
    source = Column(String(20), default=AlertSource.MANUAL.value)
    note = Column(Text, nullable=True)
    dismissed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<FluctuationAlert(id='{self.id}', tank_id='{self.tank_id}', date_str='{self.date_str}')>"
