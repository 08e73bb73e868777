from typing import Dict, Iterable, List, Optional
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Tank, Reading, FluctuationAlert
from app.models.tank import new_id
from app.schemas import AlertCreate
from app.services.fluctuation import FluctuationDetector, FluctuationFlag, apply_reviews

logger = logging.getLogger(__name__)

ALERT_FIELDS = (
    "tank_id", "tank_name", "date_str", "reason", "current_value", "prev_value",
    "next_value", "is_possible_refill", "source", "note",
)


class AlertService:
    """Scanning plus the review state (notes / dismissals) of fluctuation alerts."""

    def __init__(self, db: Session, settings):
        self.db = db
        self.detector = FluctuationDetector.from_settings(settings)

    def scan(
        self,
        tank_id: Optional[str] = None,
        threshold_pct: Optional[float] = None,
        include_explained: bool = True,
    ) -> List[FluctuationFlag]:
        query = self.db.query(Tank)
        if tank_id:
            query = query.filter(Tank.id == tank_id)
        tanks = query.order_by(Tank.sort_order, Tank.name).all()
        if tank_id and not tanks:
            raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")

        flags = []
        for tank in tanks:
            readings = self.db.query(Reading).filter(Reading.tank_id == tank.id).all()
            reviewed = self.db.query(FluctuationAlert).filter(FluctuationAlert.tank_id == tank.id).all()
            scanned = self.detector.scan(tank, readings, threshold_pct=threshold_pct)
            flags.extend(apply_reviews(scanned, reviewed, include_explained=include_explained))
        return flags

    def list_saved(self, tank_id: Optional[str] = None, include_dismissed: bool = False) -> List[FluctuationAlert]:
        query = self.db.query(FluctuationAlert)
        if tank_id:
            query = query.filter(FluctuationAlert.tank_id == tank_id)
        if not include_dismissed:
            query = query.filter(FluctuationAlert.dismissed == False)
        return query.order_by(FluctuationAlert.date_str.desc()).all()

    def _upsert(self, payload: AlertCreate) -> FluctuationAlert:
        if not self.db.get(Tank, payload.tank_id):
            raise HTTPException(status_code=404, detail=f"Tank not found: {payload.tank_id}")

        alert = self.db.get(FluctuationAlert, payload.id) if payload.id else None
        if alert is None:
            # Manually entered alerts have no reading pair to derive an id from
            alert = FluctuationAlert(id=payload.id or new_id())
            self.db.add(alert)

        data = payload.model_dump(mode="json", exclude={"id"})
        for field in ALERT_FIELDS:
            setattr(alert, field, data[field])
        alert.dismissed = False
        return alert

    def save(self, payload: AlertCreate) -> FluctuationAlert:
        try:
            alert = self._upsert(payload)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(alert)
        return alert

    def save_batch(self, payloads: List[AlertCreate]) -> List[FluctuationAlert]:
        try:
            alerts = [self._upsert(p) for p in payloads]
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"Alert batch of {len(payloads)} rolled back")
            raise
        for alert in alerts:
            self.db.refresh(alert)
        logger.info(f"Saved {len(alerts)} alerts")
        return alerts

    def _scanned(self, ids: Iterable[str], threshold_pct: Optional[float] = None) -> Dict[str, FluctuationFlag]:
        """Fresh scan output for the given alert ids, across all tanks."""
        wanted = set(ids)
        found = {}
        for tank in self.db.query(Tank).all():
            readings = self.db.query(Reading).filter(Reading.tank_id == tank.id).all()
            for flag in self.detector.scan(tank, readings, threshold_pct=threshold_pct):
                if flag.id in wanted:
                    found[flag.id] = flag
        return found

    def _from_flag(self, flag: FluctuationFlag) -> FluctuationAlert:
        alert = FluctuationAlert(
            id=flag.id,
            tank_id=flag.tank_id,
            tank_name=flag.tank_name,
            date_str=flag.date_str,
            reason=flag.reason,
            current_value=flag.current_value,
            prev_value=flag.prev_value,
            next_value=flag.next_value,
            is_possible_refill=flag.is_possible_refill,
            source=flag.source,
            dismissed=False,
        )
        self.db.add(alert)
        return alert

    def _get_or_persist(self, alert_id: str, threshold_pct: Optional[float] = None) -> FluctuationAlert:
        """
        The saved row for an alert id. A scanned alert that was never saved
        gets its row now, so it can be annotated or dismissed directly.
        """
        alert = self.db.get(FluctuationAlert, alert_id)
        if alert is not None:
            return alert
        flag = self._scanned([alert_id], threshold_pct).get(alert_id)
        if flag is None:
            raise HTTPException(status_code=404, detail="Alert not found")
        return self._from_flag(flag)

    def annotate(self, alert_id: str, note: Optional[str], threshold_pct: Optional[float] = None) -> FluctuationAlert:
        try:
            alert = self._get_or_persist(alert_id, threshold_pct)
            alert.note = note
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(alert)
        return alert

    def dismiss(self, alert_id: str, threshold_pct: Optional[float] = None) -> None:
        """
        Dismissed alerts keep their row so that later scans of the same
        reading pair stay hidden.
        """
        try:
            alert = self._get_or_persist(alert_id, threshold_pct)
            alert.dismissed = True
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def dismiss_many(self, ids: List[str], threshold_pct: Optional[float] = None) -> int:
        try:
            existing = self.db.query(FluctuationAlert).filter(FluctuationAlert.id.in_(ids)).all()
            for alert in existing:
                alert.dismissed = True

            missing = set(ids) - {alert.id for alert in existing}
            created = []
            if missing:
                for flag in self._scanned(missing, threshold_pct).values():
                    alert = self._from_flag(flag)
                    alert.dismissed = True
                    created.append(alert)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        count = len(existing) + len(created)
        logger.info(f"Dismissed {count} alerts")
        return count
