from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from datetime import datetime
import enum

from app.database import Base
from app.models.tank import new_id


class NoteCategory(str, enum.Enum):
    REFILL = "REFILL"
    CONTRACT = "CONTRACT"
    MAINTENANCE = "MAINTENANCE"
    OTHER = "OTHER"


class ImportantNote(Base):
    __tablename__ = "important_notes"

    id = Column(String(50), primary_key=True, default=new_id)
    date_str = Column(String(10), nullable=True, index=True)  # YYYY-MM-DD
    area = Column(String(100), nullable=True)
    chemical_name = Column(String(100), nullable=True)
    note = Column(Text, nullable=True)
    category = Column(String(20), default=NoteCategory.OTHER.value)
    tank_id = Column(String(50), ForeignKey("tanks.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<ImportantNote(id='{self.id}', date_str='{self.date_str}')>"
