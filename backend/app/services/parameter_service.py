from typing import List, Optional
from datetime import datetime
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Tank, CWSParameter, BWSParameter
from app.schemas import CWSParamBase, BWSParamBase

logger = logging.getLogger(__name__)


class ParameterService:
    """
    Dated CWS / BWS parameter history. Saving a record for a calendar day
    replaces any record the tank already has for that day.
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_tank(self, tank_id: str) -> None:
        if not self.db.get(Tank, tank_id):
            raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")

    def _replace_same_day(self, model, tank_id: str, entry_date: datetime, keep_id: Optional[str] = None) -> int:
        existing = self.db.query(model).filter(model.tank_id == tank_id).all()
        same_day = [r for r in existing if r.date.date() == entry_date.date() and r.id != keep_id]
        for record in same_day:
            self.db.delete(record)
        if same_day:
            logger.info(f"Replacing {len(same_day)} {model.__tablename__} record(s) for tank {tank_id} on {entry_date.date()}")
        return len(same_day)

    def _add(self, model, tank_id: str, payload, commit: bool):
        self._require_tank(tank_id)
        data = payload.model_dump(exclude={"tank_id"})
        entry_date = data.pop("date", None) or datetime.utcnow()
        self._replace_same_day(model, tank_id, entry_date)
        record = model(tank_id=tank_id, date=entry_date, **data)
        self.db.add(record)
        if commit:
            try:
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(record)
        else:
            self.db.flush()
        return record

    def add_cws(self, tank_id: str, payload: CWSParamBase, commit: bool = True) -> CWSParameter:
        return self._add(CWSParameter, tank_id, payload, commit)

    def add_bws(self, tank_id: str, payload: BWSParamBase, commit: bool = True) -> BWSParameter:
        return self._add(BWSParameter, tank_id, payload, commit)

    def history(self, model, tank_id: str) -> List:
        """All records for the tank, newest first."""
        return self.db.query(model).filter(
            model.tank_id == tank_id
        ).order_by(model.date.desc(), model.updated_at.desc()).all()

    def latest(self, model, tank_id: str) -> Optional[object]:
        records = self.history(model, tank_id)
        return records[0] if records else None

    def update(self, model, record_id: str, payload) -> object:
        record = self.db.get(model, record_id)
        if not record:
            raise HTTPException(status_code=404, detail="Parameter record not found")
        changes = payload.model_dump(exclude_unset=True)
        new_date = changes.pop("date", None)
        try:
            for field, value in changes.items():
                setattr(record, field, value)

            # Temperature edits override any stored or submitted difference
            if "temp_outlet" in changes or "temp_return" in changes:
                if record.temp_outlet is not None and record.temp_return is not None:
                    record.temp_diff = abs(record.temp_return - record.temp_outlet)

            if new_date is not None:
                if new_date.date() != record.date.date():
                    self._replace_same_day(model, record.tank_id, new_date, keep_id=record.id)
                record.date = new_date
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(record)
        return record

    def delete(self, model, record_id: str) -> None:
        record = self.db.get(model, record_id)
        if not record:
            raise HTTPException(status_code=404, detail="Parameter record not found")
        self.db.delete(record)
        self.db.commit()
